"""
Registration Ledger: confirmed (user, event) bookings.

Write helpers only add to or remove from the session; the allocation
transaction decides when to flush and commit.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from seatsync.models.registration import Registration


async def get_registration(session: AsyncSession, user_id: str, event_id: int) -> Optional[Registration]:
    result = await session.execute(
        select(Registration).where(
            Registration.user_id == user_id,
            Registration.event_id == event_id,
        )
    )
    return result.scalar_one_or_none()


async def list_user_registrations(session: AsyncSession, user_id: str) -> list[Registration]:
    """A user's registrations in ledger order (oldest first)."""
    result = await session.execute(
        select(Registration)
        .where(Registration.user_id == user_id)
        .order_by(Registration.id.asc())
    )
    return list(result.scalars().all())


def add_registration(
    session: AsyncSession,
    user_id: str,
    event_id: int,
    promoted_from_waitlist: bool = False,
) -> Registration:
    registration = Registration(
        user_id=user_id,
        event_id=event_id,
        promoted_from_waitlist=promoted_from_waitlist,
    )
    session.add(registration)
    return registration


async def delete_registration(session: AsyncSession, registration: Registration) -> None:
    await session.delete(registration)
    await session.flush()


async def count_by_event(session: AsyncSession) -> dict[int, int]:
    result = await session.execute(
        select(Registration.event_id, func.count(Registration.id)).group_by(Registration.event_id)
    )
    return {event_id: count for event_id, count in result.all()}


async def event_ids_by_user(session: AsyncSession) -> dict[str, set[int]]:
    result = await session.execute(select(Registration.user_id, Registration.event_id))
    by_user: dict[str, set[int]] = {}
    for user_id, event_id in result.all():
        by_user.setdefault(user_id, set()).add(event_id)
    return by_user
