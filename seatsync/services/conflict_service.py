"""
Conflict Checker: does a candidate time slot overlap a user's bookings?

Slots are half-open intervals [start, end) on one calendar day. An event
without times blocks the whole day (00:00 to 23:59). Touching slots,
10:00-11:00 followed by 11:00-12:00, do not conflict.

The check is advisory. It runs against the registrations visible to the
caller's session and is not serialized with writes on other events.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from seatsync.services import ledger

DAY_START = time(0, 0)
DAY_END = time(23, 59)


@dataclass(frozen=True)
class ConflictResult:
    conflict: bool
    with_title: Optional[str] = None
    with_event_id: Optional[int] = None


NO_CONFLICT = ConflictResult(conflict=False)


def slot_bounds(start: Optional[time], end: Optional[time]) -> tuple[time, time]:
    return start or DAY_START, end or DAY_END


def intervals_overlap(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    return a_start < b_end and b_start < a_end


async def check_conflict(
    session: AsyncSession,
    user_id: str,
    candidate_date: date,
    candidate_start: Optional[time] = None,
    candidate_end: Optional[time] = None,
    exclude_event_id: Optional[int] = None,
) -> ConflictResult:
    """
    Return the first confirmed registration of `user_id` whose event overlaps
    the candidate slot. Registrations are scanned oldest first, so the
    answer is deterministic for a given ledger.
    """
    start, end = slot_bounds(candidate_start, candidate_end)

    for registration in await ledger.list_user_registrations(session, user_id):
        event = registration.event
        if event is None or event.id == exclude_event_id:
            continue
        if event.date != candidate_date:
            continue

        existing_start, existing_end = slot_bounds(event.start_time, event.end_time)
        if intervals_overlap(start, end, existing_start, existing_end):
            return ConflictResult(conflict=True, with_title=event.title, with_event_id=event.id)

    return NO_CONFLICT
