"""
Registration model: one confirmed seat held by a user on an event.

Key design decisions:
- Unique constraint on (user_id, event_id) prevents duplicate bookings
- Cancellation deletes the row; status is always "confirmed"
- user_id is the identity provider's opaque id, not a local foreign key
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from seatsync.db.base import Base, TimestampMixin

STATUS_CONFIRMED = "confirmed"


class Registration(Base, TimestampMixin):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=STATUS_CONFIRMED)
    promoted_from_waitlist = Column(Boolean, nullable=False, default=False)

    event = relationship("Event", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_user_event_registration"),
        CheckConstraint("status = 'confirmed'", name="check_registration_status"),
    )

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, user={self.user_id}, event={self.event_id})>"
