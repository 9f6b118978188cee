"""ServiceBooking class - a scheduled engagement of a vehicle and driver."""

import uuid
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Optional, Union

from .attachment import Attachment, AttachmentOwner
from .errors import InvalidTransitionError


class BookingStatus(Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"

    @property
    def blocks_calendar(self) -> bool:
        """Completed and cancelled bookings no longer occupy their slot."""
        return self not in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


TRANSITIONS = {
    BookingStatus.SCHEDULED: {
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
        BookingStatus.POSTPONED,
    },
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED},
    BookingStatus.POSTPONED: {BookingStatus.SCHEDULED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


class Frequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ServiceType(Enum):
    TRANSPORT = "transport"
    COLLECTION = "collection"
    DELIVERY = "delivery"
    MAINTENANCE = "maintenance"
    INSPECTION = "inspection"
    OTHER = "other"


class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RecurrenceRule:
    """How a booking repeats. `frequency` stays a raw string until validated."""

    def __init__(
            self,
            active: bool = False,
            frequency: Optional[str] = None,
            end_date: Optional[Union[date, datetime]] = None,
    ):
        self.active = active or False
        self.frequency = frequency
        self.end_date = end_date


class ServiceBooking(AttachmentOwner):
    """A vehicle/driver engagement over [start_time, end_time]."""

    def __init__(
            self,
            title: str,
            vehicle_ref: str,
            driver: Optional[str],
            start_time: datetime,
            end_time: datetime,
            service_type: ServiceType = ServiceType.OTHER,
            status: BookingStatus = BookingStatus.SCHEDULED,
            priority: Priority = Priority.MEDIUM,
            recurrence: Optional[RecurrenceRule] = None,
            description: Optional[str] = None,
            notes: Optional[str] = None,
            completion_notes: Optional[str] = None,
            completed_at: Optional[datetime] = None,
            attachments: Optional[Dict[str, Attachment]] = None,
            created_by: Optional[str] = None,
            updated_by: Optional[str] = None,
            created_at: Optional[datetime] = None,
            updated_at: Optional[datetime] = None,
            booking_id: Optional[str] = None,
    ):
        self.id = booking_id or uuid.uuid4().hex
        self.title = title
        self.vehicle_ref = vehicle_ref
        self.driver = driver.strip() if driver else driver
        self.start_time = start_time
        self.end_time = end_time
        self.service_type = service_type
        self.status = status
        self.priority = priority
        self.recurrence = recurrence
        self.description = description
        self.notes = notes
        self.completion_notes = completion_notes
        self.completed_at = completed_at
        self.attachments = dict(attachments or {})
        self.created_by = created_by
        self.updated_by = updated_by
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def is_completed(self) -> bool:
        return self.status is BookingStatus.COMPLETED

    def can_transition_to(self, status: BookingStatus) -> bool:
        return status in TRANSITIONS[self.status]

    def transition_to(self, status: BookingStatus, at: Optional[datetime] = None) -> None:
        """Move along the status state machine; completing stamps completed_at."""
        if not self.can_transition_to(status):
            raise InvalidTransitionError(self.status, status)
        self.status = status
        if status is BookingStatus.COMPLETED and self.completed_at is None:
            self.completed_at = at or datetime.now()
