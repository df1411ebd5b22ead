"""
Domain errors raised by the allocation engine.

Every error carries the HTTP status it maps to and a stable machine code,
so the API layer renders all of them through one exception handler.
"""

from typing import Optional

from fastapi import status


class SeatSyncError(Exception):
    """Base exception for all domain-level errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "seatsync_error"
    default_message: str = "Request could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(SeatSyncError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Event does not exist"


class AlreadyRegistered(SeatSyncError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_registered"
    default_message = "Already registered for this event"


class AlreadyWaitlisted(SeatSyncError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_waitlisted"
    default_message = "Already on the waitlist for this event"


class BranchIneligible(SeatSyncError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "branch_ineligible"
    default_message = "This event is not available for your department"


class EventClosed(SeatSyncError):
    status_code = status.HTTP_409_CONFLICT
    code = "event_closed"
    default_message = "This event is closed for registration"


class ScheduleConflict(SeatSyncError):
    status_code = status.HTTP_409_CONFLICT
    code = "schedule_conflict"

    def __init__(self, conflicting_title: str):
        self.conflicting_title = conflicting_title
        super().__init__(f"Time conflict with: {conflicting_title}")


class RegistrationNotFound(SeatSyncError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "registration_not_found"
    default_message = "Registration not found"


class InvariantViolation(SeatSyncError):
    """
    A seat-ledger invariant was about to be broken.

    Signals a programming defect. Never caught inside the engine.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "invariant_violation"
    default_message = "Seat ledger invariant violated"


class TransientFailure(SeatSyncError):
    """Retry budget exhausted on the allocation transaction. Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "transient_failure"
    default_message = "Registration failed due to high demand. Please try again."
