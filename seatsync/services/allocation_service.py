"""
Allocation Transaction Coordinator.

Ties Event Inventory, Registration Ledger and Waitlist Queue together for
the two state-changing operations:

  register  none -> confirmed        (seat available, counter - 1)
            none -> waitlisted(n)    (no seat, appended at max position + 1)
  cancel    confirmed -> none        (head of waitlist promoted, counter kept,
                                      or counter + 1 when nobody waits)
            waitlisted -> none       (entry removed, no inventory change)

Each operation is one run_in_transaction() call. The work function reads
everything it decides on (event row, the caller's current state, the
conflict scan, the waitlist head or tail) in the same session that performs
the writes, and the first write is always the event's version bump. Two
operations on the same event therefore never both commit from the same
snapshot: the loser re-runs and sees the winner's result. In particular
two concurrent registrations for the last seat end as exactly one
"registered" and one "waitlisted".
"""

import enum
import time as _time
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatsync.core.exceptions import (
    AlreadyRegistered,
    AlreadyWaitlisted,
    BranchIneligible,
    EventClosed,
    InvariantViolation,
    RegistrationNotFound,
    ScheduleConflict,
    SeatSyncError,
)
from seatsync.core.logging import get_logger
from seatsync.core.metrics import allocation_latency, promotions, record_allocation
from seatsync.db.transaction import run_in_transaction
from seatsync.services import conflict_service, inventory, ledger, waitlist_service
from seatsync.services.conflict_service import ConflictResult

logger = get_logger(__name__)


class RegisterStatus(str, enum.Enum):
    REGISTERED = "registered"
    WAITLISTED = "waitlisted"


class CancelStatus(str, enum.Enum):
    CANCELLED = "cancelled"
    CANCELLED_AND_PROMOTED = "cancelled_and_promoted"
    REMOVED_FROM_WAITLIST = "removed_from_waitlist"


class BookingStateKind(str, enum.Enum):
    NONE = "none"
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"


@dataclass(frozen=True)
class BookingState:
    """Where a user stands on one event. `position` is set only when waitlisted."""

    kind: BookingStateKind
    position: Optional[int] = None

    @classmethod
    def none(cls) -> "BookingState":
        return cls(BookingStateKind.NONE)

    @classmethod
    def confirmed(cls) -> "BookingState":
        return cls(BookingStateKind.CONFIRMED)

    @classmethod
    def waitlisted(cls, position: int) -> "BookingState":
        return cls(BookingStateKind.WAITLISTED, position)


@dataclass(frozen=True)
class RegisterResult:
    status: RegisterStatus
    event_id: int
    position: Optional[int] = None


@dataclass(frozen=True)
class CancelResult:
    status: CancelStatus
    event_id: int
    promoted_user_id: Optional[str] = None


async def load_booking_state(session: AsyncSession, user_id: str, event_id: int) -> BookingState:
    if await ledger.get_registration(session, user_id, event_id) is not None:
        return BookingState.confirmed()
    entry = await waitlist_service.get_entry(session, user_id, event_id)
    if entry is not None:
        return BookingState.waitlisted(entry.position)
    return BookingState.none()


class AllocationCoordinator:
    """Entry point for seat allocation. Holds no state besides the session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_attempts: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.max_attempts = max_attempts

    async def register(self, user_id: str, event_id: int, department: str) -> RegisterResult:
        async def work(session: AsyncSession) -> RegisterResult:
            event = await inventory.get_event(session, event_id)

            state = await load_booking_state(session, user_id, event_id)
            if state.kind is BookingStateKind.CONFIRMED:
                raise AlreadyRegistered()
            if state.kind is BookingStateKind.WAITLISTED:
                raise AlreadyWaitlisted()

            if not event.is_upcoming:
                raise EventClosed()
            if not event.is_open_to(department):
                raise BranchIneligible()

            conflict = await conflict_service.check_conflict(
                session,
                user_id,
                event.date,
                event.start_time,
                event.end_time,
                exclude_event_id=event.id,
            )
            if conflict.conflict:
                raise ScheduleConflict(conflict.with_title)

            if event.available_seats > 0:
                await inventory.decrement_seat(session, event)
                ledger.add_registration(session, user_id, event.id)
                await session.flush()
                return RegisterResult(RegisterStatus.REGISTERED, event.id)

            await inventory.bump_version(session, event)
            entry = await waitlist_service.enqueue(session, event.id, user_id)
            return RegisterResult(RegisterStatus.WAITLISTED, event.id, position=entry.position)

        result = await self._run("register", work, user_id=user_id, event_id=event_id)

        if result.status is RegisterStatus.REGISTERED:
            logger.info("registration_confirmed", user_id=user_id, event_id=event_id)
        else:
            logger.info("waitlist_joined", user_id=user_id, event_id=event_id, position=result.position)
        return result

    async def cancel(self, user_id: str, event_id: int) -> CancelResult:
        async def work(session: AsyncSession) -> CancelResult:
            registration = await ledger.get_registration(session, user_id, event_id)

            if registration is None:
                entry = await waitlist_service.get_entry(session, user_id, event_id)
                if entry is None:
                    raise RegistrationNotFound()
                event = await inventory.get_event(session, event_id)
                await inventory.bump_version(session, event)
                await waitlist_service.remove_entry(session, entry)
                return CancelResult(CancelStatus.REMOVED_FROM_WAITLIST, event_id)

            event = await inventory.get_event(session, event_id)
            head = await waitlist_service.peek_head(session, event_id)

            if head is None:
                await inventory.increment_seat(session, event)
                await ledger.delete_registration(session, registration)
                return CancelResult(CancelStatus.CANCELLED, event_id)

            # The freed seat goes straight to the head; the counter is unchanged
            await inventory.bump_version(session, event)
            await ledger.delete_registration(session, registration)
            await waitlist_service.remove_entry(session, head)
            ledger.add_registration(session, head.user_id, event_id, promoted_from_waitlist=True)
            await session.flush()
            return CancelResult(CancelStatus.CANCELLED_AND_PROMOTED, event_id, promoted_user_id=head.user_id)

        result = await self._run("cancel", work, user_id=user_id, event_id=event_id)

        if result.status is CancelStatus.CANCELLED_AND_PROMOTED:
            promotions.inc()
            logger.info(
                "waitlist_promoted",
                event_id=event_id,
                cancelled_user_id=user_id,
                promoted_user_id=result.promoted_user_id,
            )
        elif result.status is CancelStatus.CANCELLED:
            logger.info("registration_cancelled", user_id=user_id, event_id=event_id)
        else:
            logger.info("waitlist_left", user_id=user_id, event_id=event_id)
        return result

    async def check_conflict(
        self,
        user_id: str,
        candidate_date: date,
        candidate_start: Optional[time] = None,
        candidate_end: Optional[time] = None,
        exclude_event_id: Optional[int] = None,
    ) -> ConflictResult:
        async with self.session_factory() as session:
            return await conflict_service.check_conflict(
                session,
                user_id,
                candidate_date,
                candidate_start,
                candidate_end,
                exclude_event_id=exclude_event_id,
            )

    async def booking_state(self, user_id: str, event_id: int) -> BookingState:
        async with self.session_factory() as session:
            await inventory.get_event(session, event_id)
            return await load_booking_state(session, user_id, event_id)

    async def available_seats(self, event_id: int) -> int:
        async with self.session_factory() as session:
            return await inventory.get_available_seats(session, event_id)

    async def _run(self, operation: str, work, **context):
        started = _time.perf_counter()
        try:
            result = await run_in_transaction(
                self.session_factory,
                work,
                operation=operation,
                max_attempts=self.max_attempts,
            )
        except InvariantViolation:
            record_allocation(operation, "invariant_violation")
            logger.error("allocation_aborted", operation=operation, **context)
            raise
        except SeatSyncError as e:
            record_allocation(operation, e.code)
            logger.warning(f"{operation}_rejected", reason=e.code, detail=e.message, **context)
            raise
        finally:
            allocation_latency.labels(operation=operation).observe(_time.perf_counter() - started)

        record_allocation(operation, result.status.value)
        return result
