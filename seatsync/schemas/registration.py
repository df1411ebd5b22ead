"""
Pydantic schemas for registration, cancellation and booking state.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, model_validator


class RegisterRequest(BaseModel):
    event_id: int


class RegisterResponse(BaseModel):
    status: str
    event_id: int
    position: Optional[int] = None
    message: str


class CancelResponse(BaseModel):
    status: str
    event_id: int
    promoted_user_id: Optional[str] = None


class BookingStateResponse(BaseModel):
    event_id: int
    state: str
    position: Optional[int] = None


class ConflictCheckRequest(BaseModel):
    date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    exclude_event_id: Optional[int] = None

    @model_validator(mode="after")
    def end_after_start(self) -> "ConflictCheckRequest":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ConflictResponse(BaseModel):
    conflict: bool
    with_title: Optional[str] = None
    with_event_id: Optional[int] = None


class RegistrationResponse(BaseModel):
    id: int
    user_id: str
    event_id: int
    status: str
    promoted_from_waitlist: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class WaitlistEntryResponse(BaseModel):
    id: int
    user_id: str
    event_id: int
    position: int
    created_at: datetime

    model_config = {"from_attributes": True}


class MyBookingsResponse(BaseModel):
    registrations: list[RegistrationResponse]
    waitlist: list[WaitlistEntryResponse]
