from seatsync.models.event import Event, EventKind, EventStatus
from seatsync.models.registration import Registration
from seatsync.models.waitlist import WaitlistEntry

__all__ = ["Event", "EventKind", "EventStatus", "Registration", "WaitlistEntry"]
