"""
Waitlist Queue: per-event FIFO of users waiting for a seat.

Positions are max + 1 at enqueue time and are never compacted, so only
their relative order matters. The head is always the minimum position.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from seatsync.models.waitlist import WaitlistEntry


async def get_entry(session: AsyncSession, user_id: str, event_id: int) -> Optional[WaitlistEntry]:
    result = await session.execute(
        select(WaitlistEntry).where(
            WaitlistEntry.user_id == user_id,
            WaitlistEntry.event_id == event_id,
        )
    )
    return result.scalar_one_or_none()


async def next_position(session: AsyncSession, event_id: int) -> int:
    result = await session.execute(
        select(func.max(WaitlistEntry.position)).where(WaitlistEntry.event_id == event_id)
    )
    return (result.scalar() or 0) + 1


async def enqueue(session: AsyncSession, event_id: int, user_id: str) -> WaitlistEntry:
    entry = WaitlistEntry(
        user_id=user_id,
        event_id=event_id,
        position=await next_position(session, event_id),
    )
    session.add(entry)
    await session.flush()
    return entry


async def peek_head(session: AsyncSession, event_id: int) -> Optional[WaitlistEntry]:
    result = await session.execute(
        select(WaitlistEntry)
        .where(WaitlistEntry.event_id == event_id)
        .order_by(WaitlistEntry.position.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def dequeue_head(session: AsyncSession, event_id: int) -> Optional[WaitlistEntry]:
    head = await peek_head(session, event_id)
    if head is not None:
        await remove_entry(session, head)
    return head


async def remove_entry(session: AsyncSession, entry: WaitlistEntry) -> None:
    await session.delete(entry)
    await session.flush()


async def remove(session: AsyncSession, user_id: str, event_id: int) -> bool:
    """Withdraw a user from an event's queue. Remaining positions keep their values."""
    entry = await get_entry(session, user_id, event_id)
    if entry is None:
        return False
    await remove_entry(session, entry)
    return True


async def list_event_entries(session: AsyncSession, event_id: int) -> list[WaitlistEntry]:
    result = await session.execute(
        select(WaitlistEntry)
        .where(WaitlistEntry.event_id == event_id)
        .order_by(WaitlistEntry.position.asc())
    )
    return list(result.scalars().all())


async def list_user_entries(session: AsyncSession, user_id: str) -> list[WaitlistEntry]:
    result = await session.execute(
        select(WaitlistEntry)
        .where(WaitlistEntry.user_id == user_id)
        .order_by(WaitlistEntry.id.asc())
    )
    return list(result.scalars().all())


async def count_by_event(session: AsyncSession) -> dict[int, int]:
    result = await session.execute(
        select(WaitlistEntry.event_id, func.count(WaitlistEntry.id)).group_by(WaitlistEntry.event_id)
    )
    return {event_id: count for event_id, count in result.all()}
