"""Validation and normalization of records before they are stored."""

from datetime import datetime
from typing import List, Optional

from .booking import Frequency, RecurrenceRule, ServiceBooking
from .errors import ValidationError
from .regions import validate_province
from .registration import (
    WASTE_CATEGORIES,
    WASTE_CLASSES,
    ActivityType,
    HaulierRegistration,
    Registration,
    WasteOperatorRegistration,
)
from .vehicle import Vehicle

TITLE_MAX = 200
DESCRIPTION_MAX = 1000


def _raise_if(problems: List[tuple]) -> None:
    """Raise one ValidationError listing every (field, message) problem."""
    if problems:
        field, message = problems[0]
        raise ValidationError(message, field=field, problems=[m for _, m in problems])


# =============================================================================
# Vehicles
# =============================================================================


def normalize_vehicle(vehicle: Vehicle) -> Vehicle:
    """
    Clear fields whose trigger condition no longer holds.

    - Road-tax exempt: no road-tax due date
    - No restricted-zone permit: no permit due date
    - Owned: no property-title due date
    - Trailer: displacement and power are 0
    """
    if vehicle.road_tax_exempt:
        vehicle.road_tax_due_date = None
    if not vehicle.has_restricted_zone_permit:
        vehicle.restricted_zone_permit_due_date = None
    if not vehicle.acquisition_type.has_property_title:
        vehicle.property_title_due_date = None
    if not vehicle.is_motor_vehicle:
        vehicle.displacement_cc = 0
        vehicle.power_kw = 0
    return vehicle


def validate_vehicle(vehicle: Vehicle) -> None:
    """Raise ValidationError if any required-iff field is missing or a value is out of range."""
    problems = []
    if not vehicle.plate:
        problems.append(("plate", "Plate is required"))
    if not vehicle.make:
        problems.append(("make", "Make is required"))
    if not vehicle.model:
        problems.append(("model", "Model is required"))
    if vehicle.registration_date is None:
        problems.append(("registration_date", "Registration date is required"))
    if vehicle.insurance_due_date is None:
        problems.append(("insurance_due_date", "Insurance due date is required"))
    if not vehicle.road_tax_exempt and vehicle.road_tax_due_date is None:
        problems.append(
            ("road_tax_due_date", "Road-tax due date is required for non-exempt vehicles")
        )
    if vehicle.has_restricted_zone_permit and vehicle.restricted_zone_permit_due_date is None:
        problems.append(
            (
                "restricted_zone_permit_due_date",
                "Restricted-zone permit due date is required when a permit is held",
            )
        )
    if vehicle.acquisition_type.has_property_title and vehicle.property_title_due_date is None:
        problems.append(
            (
                "property_title_due_date",
                "Property-title due date is required for leased or rented vehicles",
            )
        )
    if vehicle.is_motor_vehicle:
        for field in ("displacement_cc", "power_kw"):
            value = getattr(vehicle, field)
            if value is not None and value <= 0:
                problems.append((field, f"{field} must be greater than 0 for motor vehicles"))
    if vehicle.max_payload is not None and vehicle.max_payload < 0:
        problems.append(("max_payload", "Max payload cannot be negative"))
    _raise_if(problems)


# =============================================================================
# Registrations
# =============================================================================


def normalize_registration(registration: Registration) -> Registration:
    """Own-account haulier registrations carry no third-party number."""
    if (
        isinstance(registration, HaulierRegistration)
        and registration.activity_type is not ActivityType.THIRD_PARTY
    ):
        registration.third_party_number = None
    return registration


def validate_registration(registration: Registration) -> None:
    problems = []
    if not registration.registration_number:
        problems.append(("registration_number", "Registration number is required"))
    if registration.issue_date is None:
        problems.append(("issue_date", "Issue date is required"))
    if registration.expiration_date is None:
        problems.append(("expiration_date", "Expiration date is required"))
    if isinstance(registration, WasteOperatorRegistration):
        if registration.category not in WASTE_CATEGORIES:
            problems.append(("category", f"Invalid category '{registration.category}'"))
        if registration.register_class not in WASTE_CLASSES:
            problems.append(
                ("register_class", f"Invalid class '{registration.register_class}'")
            )
    elif isinstance(registration, HaulierRegistration):
        for message in validate_province(registration.region, registration.province):
            problems.append(("province", message))
        if (
            registration.activity_type is ActivityType.THIRD_PARTY
            and not registration.third_party_number
        ):
            problems.append(
                (
                    "third_party_number",
                    "Third-party number is required for third-party hauliers",
                )
            )
    _raise_if(problems)


# =============================================================================
# Bookings
# =============================================================================


def validate_interval(start: Optional[datetime], end: Optional[datetime]) -> None:
    """Both ends are required and end may not precede start."""
    problems = []
    if start is None:
        problems.append(("start_time", "Start time is required"))
    if end is None:
        problems.append(("end_time", "End time is required"))
    if start is not None and end is not None and end < start:
        problems.append(("end_time", "End time must be on or after start time"))
    _raise_if(problems)


def parse_frequency(rule: RecurrenceRule) -> Optional[Frequency]:
    """Frequency of an active rule; None for an inactive one."""
    if not rule.active:
        return None
    if not rule.frequency:
        raise ValidationError("Active recurrence requires a frequency", field="frequency")
    if isinstance(rule.frequency, Frequency):
        return rule.frequency
    try:
        return Frequency(rule.frequency)
    except ValueError:
        raise ValidationError(
            f"Invalid recurrence frequency '{rule.frequency}'", field="frequency"
        ) from None


def validate_booking(booking: ServiceBooking) -> None:
    problems = []
    if not booking.title:
        problems.append(("title", "Title is required"))
    elif len(booking.title) > TITLE_MAX:
        problems.append(("title", f"Title cannot exceed {TITLE_MAX} characters"))
    if booking.description and len(booking.description) > DESCRIPTION_MAX:
        problems.append(
            ("description", f"Description cannot exceed {DESCRIPTION_MAX} characters")
        )
    if not booking.vehicle_ref:
        problems.append(("vehicle_ref", "Vehicle is required"))
    if not booking.driver:
        problems.append(("driver", "Driver is required"))
    _raise_if(problems)
    validate_interval(booking.start_time, booking.end_time)
    if booking.recurrence is not None:
        parse_frequency(booking.recurrence)
