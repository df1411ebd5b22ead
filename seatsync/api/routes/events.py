"""
Event endpoints for students: browsing, booking state and conflict checks.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from seatsync.api.deps import get_coordinator
from seatsync.core.logging import get_logger
from seatsync.core.security import Principal, get_current_principal
from seatsync.db.session import get_db
from seatsync.schemas.event import EventListResponse, EventResponse
from seatsync.schemas.registration import BookingStateResponse, ConflictCheckRequest, ConflictResponse
from seatsync.services.allocation_service import AllocationCoordinator
from seatsync.services.cache_service import get_cached_events, make_event_list_key, set_cached_events
from seatsync.services.event_service import get_event, list_events

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(True),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    List events the caller may register for, ordered by date.
    Students only see events open to their department; admins see all.
    """
    department = None if principal.is_admin else principal.department
    key = make_event_list_key(department, page, page_size, upcoming_only)

    cached = await get_cached_events(key)
    if cached:
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, department, page, page_size, upcoming_only)
    response_data = {
        "events": [EventResponse.model_validate(e).model_dump(mode="json") for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_events(key, response_data)
    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Get a single event. Not cached (needs real-time seat counts)."""
    return await get_event(db, event_id)


@router.get("/{event_id}/booking", response_model=BookingStateResponse)
async def booking_state_endpoint(
    event_id: int,
    principal: Principal = Depends(get_current_principal),
    coordinator: AllocationCoordinator = Depends(get_coordinator),
):
    """Where the caller stands on this event: none, confirmed or waitlisted."""
    state = await coordinator.booking_state(principal.user_id, event_id)
    return BookingStateResponse(event_id=event_id, state=state.kind.value, position=state.position)


@router.post("/{event_id}/conflicts", response_model=ConflictResponse)
async def event_conflict_endpoint(
    event_id: int,
    principal: Principal = Depends(get_current_principal),
    coordinator: AllocationCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db),
):
    """Would registering for this event clash with the caller's confirmed bookings?"""
    event = await get_event(db, event_id)
    result = await coordinator.check_conflict(
        principal.user_id,
        event.date,
        event.start_time,
        event.end_time,
        exclude_event_id=event.id,
    )
    return ConflictResponse(**vars(result))


@router.post("/conflicts", response_model=ConflictResponse)
async def slot_conflict_endpoint(
    slot: ConflictCheckRequest,
    principal: Principal = Depends(get_current_principal),
    coordinator: AllocationCoordinator = Depends(get_coordinator),
):
    """Check an arbitrary date/time slot against the caller's confirmed bookings."""
    result = await coordinator.check_conflict(
        principal.user_id,
        slot.date,
        slot.start_time,
        slot.end_time,
        exclude_event_id=slot.exclude_event_id,
    )
    return ConflictResponse(**vars(result))
