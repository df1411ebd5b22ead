"""
Pydantic schemas for the admin analytics and compliance views.
"""

from pydantic import BaseModel, Field


class EventAnalyticsResponse(BaseModel):
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

    model_config = {"from_attributes": True}


class RosterEntry(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    department: str


class ComplianceRequest(BaseModel):
    roster: list[RosterEntry]


class ComplianceResponse(BaseModel):
    user_id: str
    department: str
    total_mandatory: int
    completed_mandatory: int
    pending_mandatory: int
    compliance_percent: int
    is_compliant: bool
    pending_events: list[str]

    model_config = {"from_attributes": True}
