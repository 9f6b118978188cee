"""Double-booking detection for vehicles and drivers."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .booking import BookingStatus, ServiceBooking
from .validation import validate_interval

logger = logging.getLogger(__name__)


@dataclass
class ConflictQuery:
    """A proposed booking slot to check against the calendar."""

    vehicle_ref: Optional[str]
    driver: Optional[str]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    exclude_booking_id: Optional[str] = None

    @classmethod
    def for_booking(cls, booking: ServiceBooking) -> "ConflictQuery":
        """Query for an existing or draft booking, ignoring the booking itself."""
        return cls(
            vehicle_ref=booking.vehicle_ref,
            driver=booking.driver,
            start_time=booking.start_time,
            end_time=booking.end_time,
            exclude_booking_id=booking.id,
        )


@dataclass
class BookingSummary:
    """A conflicting booking and what it clashes on."""

    booking_id: str
    title: str
    vehicle_ref: str
    driver: Optional[str]
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    on_vehicle: bool = False
    on_driver: bool = False

    @classmethod
    def of(cls, booking: ServiceBooking, on_vehicle: bool, on_driver: bool) -> "BookingSummary":
        return cls(
            booking_id=booking.id,
            title=booking.title,
            vehicle_ref=booking.vehicle_ref,
            driver=booking.driver,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status,
            on_vehicle=on_vehicle,
            on_driver=on_driver,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.booking_id,
            "title": self.title,
            "vehicleRef": self.vehicle_ref,
            "driver": self.driver,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "status": self.status.value,
            "onVehicle": self.on_vehicle,
            "onDriver": self.on_driver,
        }


@dataclass
class ConflictResult:
    conflicts: List[BookingSummary] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasConflicts": self.has_conflicts,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Closed-interval overlap: touching endpoints count as overlapping."""
    return start_a <= end_b and end_a >= start_b


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a == b


def find_conflicts(
    candidate: ConflictQuery, bookings: Iterable[ServiceBooking]
) -> List[BookingSummary]:
    """
    Bookings that would clash with the candidate slot.

    A booking clashes when it still blocks the calendar (not completed or
    cancelled), is not the excluded booking, shares the vehicle or the driver,
    and its interval overlaps the candidate's inclusively.
    """
    validate_interval(candidate.start_time, candidate.end_time)
    driver = candidate.driver.strip() if candidate.driver else candidate.driver

    conflicts = []
    for booking in bookings:
        if not booking.status.blocks_calendar:
            continue
        if candidate.exclude_booking_id and booking.id == candidate.exclude_booking_id:
            continue
        on_vehicle = _same(booking.vehicle_ref, candidate.vehicle_ref)
        on_driver = _same(booking.driver, driver)
        if not (on_vehicle or on_driver):
            continue
        if intervals_overlap(
            booking.start_time, booking.end_time, candidate.start_time, candidate.end_time
        ):
            conflicts.append(BookingSummary.of(booking, on_vehicle, on_driver))

    conflicts.sort(key=lambda c: (c.start_time, c.booking_id))
    if conflicts:
        logger.info(
            "Slot %s - %s clashes with %d booking(s)",
            candidate.start_time.isoformat(),
            candidate.end_time.isoformat(),
            len(conflicts),
        )
    return conflicts


def check_conflicts(
    candidate: ConflictQuery, bookings: Iterable[ServiceBooking]
) -> ConflictResult:
    return ConflictResult(conflicts=find_conflicts(candidate, bookings))
