"""
Read-only rollups over the seat ledger for the admin dashboard.

Nothing here writes; every number is a count of registrations or waitlist
entries grouped by event or by user.
"""

from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seatsync.models.event import Event
from seatsync.services import ledger, waitlist_service

HIGH_DEMAND_UTILIZATION = 80
MEDIUM_DEMAND_UTILIZATION = 50


@dataclass(frozen=True)
class EventAnalytics:
    event_id: int
    title: str
    kind: str
    date: str
    total_seats: int
    enrolled_count: int
    waitlist_count: int
    utilization_percent: int
    demand_level: str
    is_mandatory: bool


@dataclass(frozen=True)
class ComplianceStatus:
    user_id: str
    department: str
    total_mandatory: int
    completed_mandatory: int
    pending_mandatory: int
    compliance_percent: int
    is_compliant: bool
    pending_events: list[str] = field(default_factory=list)


def percent(part: int, whole: int) -> int:
    """Whole percentage with halves rounded up (1 of 8 is 13, not 12)."""
    return (200 * part + whole) // (2 * whole)


def utilization_percent(enrolled: int, total_seats: int) -> int:
    if total_seats <= 0:
        return 0
    return percent(enrolled, total_seats)


def demand_level(utilization: int, waitlist_count: int) -> str:
    if utilization >= HIGH_DEMAND_UTILIZATION or waitlist_count > 0:
        return "High"
    if utilization >= MEDIUM_DEMAND_UTILIZATION:
        return "Medium"
    return "Low"


async def event_analytics(db: AsyncSession) -> list[EventAnalytics]:
    events = (await db.execute(select(Event).order_by(Event.date.asc(), Event.id.asc()))).scalars().all()
    enrolled_by_event = await ledger.count_by_event(db)
    waiting_by_event = await waitlist_service.count_by_event(db)

    rows = []
    for event in events:
        enrolled = enrolled_by_event.get(event.id, 0)
        waiting = waiting_by_event.get(event.id, 0)
        utilization = utilization_percent(enrolled, event.total_seats)
        rows.append(
            EventAnalytics(
                event_id=event.id,
                title=event.title,
                kind=event.kind,
                date=event.date.isoformat(),
                total_seats=event.total_seats,
                enrolled_count=enrolled,
                waitlist_count=waiting,
                utilization_percent=utilization,
                demand_level=demand_level(utilization, waiting),
                is_mandatory=bool(event.is_mandatory),
            )
        )
    return rows


async def _mandatory_events(db: AsyncSession) -> list[Event]:
    result = await db.execute(
        select(Event).where(Event.is_mandatory.is_(True)).order_by(Event.date.asc(), Event.id.asc())
    )
    return list(result.scalars().all())


def _compliance(user_id: str, department: str, mandatory: list[Event], registered: set[int]) -> ComplianceStatus:
    relevant = [e for e in mandatory if e.is_open_to(department)]
    completed = [e for e in relevant if e.id in registered]
    pending = [e.title for e in relevant if e.id not in registered]
    total = len(relevant)
    return ComplianceStatus(
        user_id=user_id,
        department=department,
        total_mandatory=total,
        completed_mandatory=len(completed),
        pending_mandatory=total - len(completed),
        compliance_percent=percent(len(completed), total) if total else 100,
        is_compliant=len(completed) >= total,
        pending_events=pending,
    )


async def compliance_report(db: AsyncSession, roster: Iterable[tuple[str, str]]) -> list[ComplianceStatus]:
    """Compliance for each (user_id, department) pair supplied by the identity provider."""
    mandatory = await _mandatory_events(db)
    registered_by_user = await ledger.event_ids_by_user(db)
    return [
        _compliance(user_id, department, mandatory, registered_by_user.get(user_id, set()))
        for user_id, department in roster
    ]


async def student_compliance(db: AsyncSession, user_id: str, department: str) -> ComplianceStatus:
    mandatory = await _mandatory_events(db)
    registered = {r.event_id for r in await ledger.list_user_registrations(db, user_id)}
    return _compliance(user_id, department, mandatory, registered)
