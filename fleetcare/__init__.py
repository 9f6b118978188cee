"""
Fleet compliance tracking and service booking.

This package provides:
- Tier: Expiration urgency levels (OVERDUE, CRITICAL, URGENT, ...)
- BodyType, Vehicle: Fleet vehicles and their compliance dates
- Driver, DriverDocument: Drivers and their licences and qualifications
- WasteOperatorRegistration, HaulierRegistration: Regulatory registrations
- ServiceBooking, RecurrenceRule: Scheduled vehicle/driver engagements
- calc_next_inspection: Inspection cadence by body type
- build_expiration_report: Expiration tiers across the fleet
- find_conflicts / check_conflicts: Vehicle and driver double-booking checks
- generate_recurring_bookings: Drafts from a recurrence rule
- FleetStore, load_fleet, save_fleet: YAML-backed record store
"""

from .tier import Tier
from .errors import (
    FleetError,
    ValidationError,
    InvalidTransitionError,
    NotFoundError,
    ConflictError,
)
from .body_type import BodyType
from .attachment import Attachment
from .vehicle import Vehicle, AcquisitionType, VehicleStatus
from .driver import Driver, DriverDocument, DocumentType
from .registration import (
    Registration,
    RegistrationKind,
    WasteOperatorRegistration,
    HaulierRegistration,
    ActivityType,
)
from .booking import (
    ServiceBooking,
    BookingStatus,
    RecurrenceRule,
    Frequency,
    ServiceType,
    Priority,
)
from .calculations import calc_next_inspection, days_remaining, check_tier, InspectionSchedule
from .config import ExpirationWindows
from .expiration_due import Category, ExpirationDue
from .expirations import build_expiration_report, ExpirationReport, CategoryReport
from .conflicts import ConflictQuery, ConflictResult, BookingSummary, find_conflicts, check_conflicts
from .recurrence import generate_recurring_bookings
from .filters import VehicleFilter, BookingFilter, RegistrationFilter
from .fleet import Fleet, FleetStatistics
from .loader import load_fleet, save_fleet
from .storage import LocalFileStorage
from .store import FleetStore, BookingOutcome

__all__ = [
    "Tier",
    "FleetError",
    "ValidationError",
    "InvalidTransitionError",
    "NotFoundError",
    "ConflictError",
    "BodyType",
    "Attachment",
    "Vehicle",
    "AcquisitionType",
    "VehicleStatus",
    "Driver",
    "DriverDocument",
    "DocumentType",
    "Registration",
    "RegistrationKind",
    "WasteOperatorRegistration",
    "HaulierRegistration",
    "ActivityType",
    "ServiceBooking",
    "BookingStatus",
    "RecurrenceRule",
    "Frequency",
    "ServiceType",
    "Priority",
    "calc_next_inspection",
    "days_remaining",
    "check_tier",
    "InspectionSchedule",
    "ExpirationWindows",
    "Category",
    "ExpirationDue",
    "build_expiration_report",
    "ExpirationReport",
    "CategoryReport",
    "ConflictQuery",
    "ConflictResult",
    "BookingSummary",
    "find_conflicts",
    "check_conflicts",
    "generate_recurring_bookings",
    "VehicleFilter",
    "BookingFilter",
    "RegistrationFilter",
    "Fleet",
    "FleetStatistics",
    "load_fleet",
    "save_fleet",
    "LocalFileStorage",
    "FleetStore",
    "BookingOutcome",
]
