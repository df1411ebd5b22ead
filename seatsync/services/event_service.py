"""
Event service: administrator-facing event metadata and lifecycle.

Seat counters are never written here except at creation time; closing and
reopening go through the allocation transaction so they serialize with
registrations on the same event.
"""

from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatsync.core.logging import get_logger
from seatsync.db.transaction import run_in_transaction
from seatsync.models.event import Event, EventStatus
from seatsync.schemas.event import EventCreate
from seatsync.services import inventory

logger = get_logger(__name__)


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create a new Upcoming event with every seat available."""
    if event_data.date < date.today():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event date must not be in the past",
        )

    event = Event(
        title=event_data.title,
        kind=event_data.kind.value,
        date=event_data.date,
        start_time=event_data.start_time,
        end_time=event_data.end_time,
        total_seats=event_data.total_seats,
        available_seats=event_data.total_seats,
        status=EventStatus.UPCOMING.value,
        is_mandatory=event_data.is_mandatory,
        target_branches=sorted(set(event_data.target_branches)),
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info(
        "event_created",
        event_id=event.id,
        title=event.title,
        seats=event.total_seats,
        mandatory=event.is_mandatory,
        branches=event.target_branches,
    )
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    return await inventory.get_event(db, event_id)


async def set_event_status(
    session_factory: async_sessionmaker[AsyncSession],
    event_id: int,
    new_status: EventStatus,
) -> Event:
    """
    Close or reopen an event. Closing blocks new registrations only;
    existing registrations and waitlist entries stay as they are.
    """

    async def work(session: AsyncSession) -> Event:
        event = await inventory.get_event(session, event_id)
        if event.status != new_status.value:
            await inventory.bump_version(session, event, status=new_status.value)
        await session.refresh(event)
        return event

    event = await run_in_transaction(session_factory, work, operation="set_event_status")
    logger.info("event_status_changed", event_id=event_id, status=new_status.value)
    return event


async def list_events(
    db: AsyncSession,
    department: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = True,
) -> tuple[list[Event], int]:
    """
    List events ordered by date.

    Without a department (the admin view) counting and paging run in SQL.
    With a department only events open to it are returned (unrestricted or
    targeting it). Branch targeting lives in a JSON column, so that filter
    and the pagination after it run in Python over every matching row.
    Known scaling limit: a student listing reads all upcoming events.
    """
    query = select(Event)
    if upcoming_only:
        query = query.where(Event.status == EventStatus.UPCOMING.value)
    offset = (page - 1) * page_size

    if department is None:
        total = await db.scalar(select(func.count()).select_from(query.subquery()))
        result = await db.execute(
            query.order_by(Event.date.asc(), Event.start_time.asc(), Event.id.asc())
            .offset(offset)
            .limit(page_size)
        )
        return list(result.scalars().all()), total

    result = await db.execute(
        query.order_by(Event.date.asc(), Event.start_time.asc(), Event.id.asc())
    )
    events = [e for e in result.scalars().all() if e.is_open_to(department)]
    return events[offset:offset + page_size], len(events)
