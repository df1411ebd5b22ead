"""
Event model with seat inventory tracking.

Key design decisions:
- `available_seats` is denormalized so seat checks never COUNT registrations;
  the CHECK constraints below pin it to 0 <= available_seats <= total_seats
- `version` column is the serialization point for every allocation write
  on this event (see seatsync.db.transaction)
- `target_branches` empty means the event is open to every department
"""

import enum

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, Date, Index, Integer, String, Time

from seatsync.db.base import Base, TimestampMixin


class EventKind(str, enum.Enum):
    WORKSHOP = "Workshop"
    SEMINAR = "Seminar"


class EventStatus(str, enum.Enum):
    UPCOMING = "Upcoming"
    CLOSED = "Closed"


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    kind = Column(String(20), nullable=False, default=EventKind.WORKSHOP.value)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=EventStatus.UPCOMING.value)
    is_mandatory = Column(Boolean, nullable=False, default=False)
    target_branches = Column(JSON, nullable=False, default=list)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        CheckConstraint("total_seats > 0", name="check_total_seats_positive"),
        CheckConstraint("available_seats <= total_seats", name="check_available_lte_total"),
        CheckConstraint("kind IN ('Workshop', 'Seminar')", name="check_event_kind"),
        CheckConstraint("status IN ('Upcoming', 'Closed')", name="check_event_status"),
        Index("ix_events_date", "date"),
        Index("ix_events_status_date", "status", "date"),
    )

    def is_open_to(self, department: str) -> bool:
        branches = self.target_branches or []
        return not branches or department in branches

    @property
    def is_upcoming(self) -> bool:
        return self.status == EventStatus.UPCOMING.value

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, available={self.available_seats}/{self.total_seats})>"
