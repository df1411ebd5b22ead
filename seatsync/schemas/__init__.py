from seatsync.schemas.event import EventCreate, EventResponse, EventListResponse
from seatsync.schemas.registration import (
    RegisterRequest, RegisterResponse, CancelResponse, BookingStateResponse,
    ConflictCheckRequest, ConflictResponse, MyBookingsResponse,
)
from seatsync.schemas.analytics import (
    EventAnalyticsResponse, ComplianceRequest, ComplianceResponse,
)

__all__ = [
    "EventCreate", "EventResponse", "EventListResponse",
    "RegisterRequest", "RegisterResponse", "CancelResponse", "BookingStateResponse",
    "ConflictCheckRequest", "ConflictResponse", "MyBookingsResponse",
    "EventAnalyticsResponse", "ComplianceRequest", "ComplianceResponse",
]
