"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from seatsync.core.config import get_settings
from seatsync.models.event import EventKind


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    kind: EventKind = EventKind.WORKSHOP
    date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    total_seats: int = Field(..., gt=0, le=100000)
    is_mandatory: bool = False
    target_branches: list[str] = Field(default_factory=list)

    @field_validator("target_branches")
    @classmethod
    def known_departments(cls, branches: list[str]) -> list[str]:
        unknown = sorted(set(branches) - set(get_settings().DEPARTMENTS))
        if unknown:
            raise ValueError(f"Unknown departments: {', '.join(unknown)}")
        return branches

    @model_validator(mode="after")
    def end_after_start(self) -> "EventCreate":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class EventResponse(BaseModel):
    id: int
    title: str
    kind: str
    date: date
    start_time: Optional[time]
    end_time: Optional[time]
    total_seats: int
    available_seats: int
    status: str
    is_mandatory: bool
    target_branches: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False
