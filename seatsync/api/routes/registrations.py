"""
Registration endpoints backed by the allocation coordinator.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from seatsync.api.deps import get_coordinator
from seatsync.core.security import Principal, get_current_principal
from seatsync.db.session import get_db
from seatsync.schemas.analytics import ComplianceResponse
from seatsync.schemas.registration import (
    CancelResponse,
    MyBookingsResponse,
    RegisterRequest,
    RegisterResponse,
    RegistrationResponse,
    WaitlistEntryResponse,
)
from seatsync.services import ledger, waitlist_service
from seatsync.services.allocation_service import AllocationCoordinator, RegisterStatus
from seatsync.services.analytics_service import student_compliance
from seatsync.services.cache_service import invalidate_event_cache

router = APIRouter(prefix="/registrations", tags=["Registrations"])

MESSAGES = {
    RegisterStatus.REGISTERED: "Successfully registered!",
    RegisterStatus.WAITLISTED: "Added to waitlist!",
}


@router.post("/", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_endpoint(
    request: RegisterRequest,
    principal: Principal = Depends(get_current_principal),
    coordinator: AllocationCoordinator = Depends(get_coordinator),
):
    """
    Take a seat on an event, or join its waitlist when it is full.

    Fails with 409 for duplicates, closed events and schedule conflicts,
    403 when the event does not target the caller's department and 503
    when the seat counter stayed contended for the whole retry budget.
    """
    result = await coordinator.register(principal.user_id, request.event_id, principal.department)
    await invalidate_event_cache()
    return RegisterResponse(
        status=result.status.value,
        event_id=result.event_id,
        position=result.position,
        message=MESSAGES[result.status],
    )


@router.delete("/{event_id}", response_model=CancelResponse)
async def cancel_endpoint(
    event_id: int,
    principal: Principal = Depends(get_current_principal),
    coordinator: AllocationCoordinator = Depends(get_coordinator),
):
    """Cancel a seat (promoting the head of the waitlist) or leave the waitlist."""
    result = await coordinator.cancel(principal.user_id, event_id)
    await invalidate_event_cache()
    return CancelResponse(
        status=result.status.value,
        event_id=result.event_id,
        promoted_user_id=result.promoted_user_id,
    )


@router.get("/me", response_model=MyBookingsResponse)
async def my_bookings_endpoint(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    registrations = await ledger.list_user_registrations(db, principal.user_id)
    entries = await waitlist_service.list_user_entries(db, principal.user_id)
    return MyBookingsResponse(
        registrations=[RegistrationResponse.model_validate(r) for r in registrations],
        waitlist=[WaitlistEntryResponse.model_validate(e) for e in entries],
    )


@router.get("/me/compliance", response_model=ComplianceResponse)
async def my_compliance_endpoint(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Mandatory events for the caller's department and which are still pending."""
    return await student_compliance(db, principal.user_id, principal.department)
