"""
Administrator endpoints: event creation, lifecycle and dashboards.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatsync.core.logging import get_logger
from seatsync.core.security import Principal, require_admin
from seatsync.db.session import get_db, get_session_factory
from seatsync.models.event import EventStatus
from seatsync.schemas.analytics import ComplianceRequest, ComplianceResponse, EventAnalyticsResponse
from seatsync.schemas.event import EventCreate, EventResponse
from seatsync.services.analytics_service import compliance_report, event_analytics
from seatsync.services.cache_service import invalidate_event_cache
from seatsync.services.event_service import create_event, set_event_status

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    event = await create_event(db, event_data)
    await invalidate_event_cache()
    return event


@router.post("/events/{event_id}/close", response_model=EventResponse)
async def close_event_endpoint(
    event_id: int,
    admin: Principal = Depends(require_admin),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """Stop new registrations. Existing seats and waitlist entries are kept."""
    event = await set_event_status(session_factory, event_id, EventStatus.CLOSED)
    await invalidate_event_cache()
    return event


@router.post("/events/{event_id}/reopen", response_model=EventResponse)
async def reopen_event_endpoint(
    event_id: int,
    admin: Principal = Depends(require_admin),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    event = await set_event_status(session_factory, event_id, EventStatus.UPCOMING)
    await invalidate_event_cache()
    return event


@router.get("/analytics/events", response_model=list[EventAnalyticsResponse])
async def event_analytics_endpoint(
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Enrollment, waitlist size, utilization and demand level per event."""
    return await event_analytics(db)


@router.post("/compliance", response_model=list[ComplianceResponse])
async def compliance_endpoint(
    request: ComplianceRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Mandatory-event compliance for a roster supplied by the identity provider."""
    roster = [(entry.user_id, entry.department) for entry in request.roster]
    return await compliance_report(db, roster)
