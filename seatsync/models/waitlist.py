"""
Waitlist entry: a user queued behind a full event.

Positions are assigned max + 1 per event and never renumbered, so gaps
appear after withdrawals. The unique (event_id, position) index doubles as
the lookup path for the queue head.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from seatsync.db.base import Base, TimestampMixin


class WaitlistEntry(Base, TimestampMixin):
    __tablename__ = "waitlist_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    position = Column(Integer, nullable=False)

    event = relationship("Event", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_user_event_waitlist"),
        UniqueConstraint("event_id", "position", name="uq_waitlist_event_position"),
        CheckConstraint("position > 0", name="check_waitlist_position_positive"),
    )

    def __repr__(self) -> str:
        return f"<WaitlistEntry(id={self.id}, user={self.user_id}, event={self.event_id}, position={self.position})>"
