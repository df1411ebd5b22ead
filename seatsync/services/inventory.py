"""
Event Inventory: seat counters and the per-event version stamp.

The write helpers must only run inside an allocation transaction
(seatsync.db.transaction.run_in_transaction). Each one is a conditional
UPDATE guarded by the version the caller read; a zero row count means
another writer got there first and raises WriteConflict so the whole
transaction is re-run.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from seatsync.core.exceptions import InvariantViolation, NotFound
from seatsync.core.logging import get_logger
from seatsync.db.transaction import WriteConflict
from seatsync.models.event import Event

logger = get_logger(__name__)


async def get_event(session: AsyncSession, event_id: int) -> Event:
    result = await session.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFound(f"Event {event_id} not found")
    return event


async def get_available_seats(session: AsyncSession, event_id: int) -> int:
    result = await session.execute(select(Event.available_seats).where(Event.id == event_id))
    seats = result.scalar_one_or_none()
    if seats is None:
        raise NotFound(f"Event {event_id} not found")
    return seats


async def bump_version(session: AsyncSession, event: Event, **values) -> None:
    """Claim the event for this transaction, optionally updating columns."""
    result = await session.execute(
        update(Event)
        .where(Event.id == event.id, Event.version == event.version)
        .values(version=Event.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await _raise_for_missing_or_conflict(session, event)


async def decrement_seat(session: AsyncSession, event: Event) -> None:
    if event.available_seats <= 0:
        _invariant_violation("decrement_with_no_seats", event)

    result = await session.execute(
        update(Event)
        .where(
            Event.id == event.id,
            Event.version == event.version,
            Event.available_seats > 0,
        )
        .values(
            available_seats=Event.available_seats - 1,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        current = await _raise_for_missing_or_conflict(session, event)
        # Same version, so nobody else touched it: the counter really is 0
        _invariant_violation("decrement_with_no_seats", event, available=current.available_seats)


async def increment_seat(session: AsyncSession, event: Event) -> None:
    if event.available_seats >= event.total_seats:
        _invariant_violation("increment_past_total", event)

    result = await session.execute(
        update(Event)
        .where(
            Event.id == event.id,
            Event.version == event.version,
            Event.available_seats < Event.total_seats,
        )
        .values(
            available_seats=Event.available_seats + 1,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        current = await _raise_for_missing_or_conflict(session, event)
        _invariant_violation("increment_past_total", event, available=current.available_seats)


async def _raise_for_missing_or_conflict(session: AsyncSession, event: Event):
    result = await session.execute(
        select(Event.version, Event.available_seats).where(Event.id == event.id)
    )
    current = result.one_or_none()
    if current is None:
        raise NotFound(f"Event {event.id} not found")
    if current.version != event.version:
        raise WriteConflict(event.id)
    return current


def _invariant_violation(reason: str, event: Event, **context) -> None:
    logger.error(
        "allocation_invariant_violation",
        reason=reason,
        event_id=event.id,
        version=event.version,
        total_seats=event.total_seats,
        available_seats=event.available_seats,
        **context,
    )
    raise InvariantViolation(f"Seat ledger invariant violated on event {event.id}: {reason}")
