"""Typed query filters for the record store. Unset fields match everything."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .body_type import BodyType
from .booking import BookingStatus, Priority, ServiceBooking, ServiceType
from .registration import Registration
from .vehicle import AcquisitionType, Vehicle, VehicleStatus


def _contains(text: Optional[str], needle: str) -> bool:
    return text is not None and needle.lower() in text.lower()


@dataclass
class VehicleFilter:
    status: Optional[VehicleStatus] = None
    body_type: Optional[BodyType] = None
    acquisition_type: Optional[AcquisitionType] = None
    road_tax_exempt: Optional[bool] = None
    has_restricted_zone_permit: Optional[bool] = None
    has_waste_authorizations: Optional[bool] = None
    insurance_due_before: Optional[date] = None
    search: Optional[str] = None  # plate, make or model

    def matches(self, vehicle: Vehicle) -> bool:
        if self.status is not None and vehicle.status is not self.status:
            return False
        if self.body_type is not None and vehicle.body_type is not self.body_type:
            return False
        if self.acquisition_type is not None and vehicle.acquisition_type is not self.acquisition_type:
            return False
        if self.road_tax_exempt is not None and vehicle.road_tax_exempt != self.road_tax_exempt:
            return False
        if (
            self.has_restricted_zone_permit is not None
            and vehicle.has_restricted_zone_permit != self.has_restricted_zone_permit
        ):
            return False
        if (
            self.has_waste_authorizations is not None
            and bool(vehicle.waste_authorization_refs) != self.has_waste_authorizations
        ):
            return False
        if (
            self.insurance_due_before is not None
            and vehicle.insurance_due_date > self.insurance_due_before
        ):
            return False
        if self.search and not any(
            _contains(v, self.search) for v in (vehicle.plate, vehicle.make, vehicle.model)
        ):
            return False
        return True


@dataclass
class BookingFilter:
    vehicle_ref: Optional[str] = None
    driver: Optional[str] = None  # case-insensitive substring
    status: Optional[BookingStatus] = None
    service_type: Optional[ServiceType] = None
    priority: Optional[Priority] = None
    start_from: Optional[datetime] = None
    start_to: Optional[datetime] = None
    completed: Optional[bool] = None
    search: Optional[str] = None  # title, description, driver or notes

    def matches(self, booking: ServiceBooking) -> bool:
        if self.vehicle_ref is not None and booking.vehicle_ref != self.vehicle_ref:
            return False
        if self.driver is not None and not _contains(booking.driver, self.driver):
            return False
        if self.status is not None and booking.status is not self.status:
            return False
        if self.service_type is not None and booking.service_type is not self.service_type:
            return False
        if self.priority is not None and booking.priority is not self.priority:
            return False
        if self.start_from is not None and booking.start_time < self.start_from:
            return False
        if self.start_to is not None and booking.start_time > self.start_to:
            return False
        if self.completed is not None and booking.is_completed != self.completed:
            return False
        if self.search and not any(
            _contains(v, self.search)
            for v in (booking.title, booking.description, booking.driver, booking.notes)
        ):
            return False
        return True


@dataclass
class RegistrationFilter:
    expires_from: Optional[date] = None
    expires_to: Optional[date] = None
    search: Optional[str] = None  # registration number

    def matches(self, registration: Registration) -> bool:
        if self.expires_from is not None and registration.expiration_date < self.expires_from:
            return False
        if self.expires_to is not None and registration.expiration_date > self.expires_to:
            return False
        if self.search and not _contains(registration.registration_number, self.search):
            return False
        return True
