"""Fleet class - the aggregate of vehicles, drivers, bookings and registrations."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .booking import ServiceBooking
from .config import ExpirationWindows
from .driver import Driver
from .errors import NotFoundError
from .expirations import ExpirationReport, build_expiration_report
from .registration import Registration, RegistrationKind
from .vehicle import Vehicle, VehicleStatus


@dataclass
class FleetStatistics:
    """Dashboard counters. Everything except `by_status` covers active vehicles only."""

    by_status: Dict[str, int] = field(default_factory=dict)
    active: int = 0
    with_restricted_zone_permit: int = 0
    road_tax_exempt: int = 0
    with_waste_authorizations: int = 0
    with_driver: int = 0
    by_acquisition_type: Dict[str, int] = field(default_factory=dict)
    by_body_type: Dict[str, int] = field(default_factory=dict)
    average_payload: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "byStatus": self.by_status,
            "active": self.active,
            "withRestrictedZonePermit": self.with_restricted_zone_permit,
            "roadTaxExempt": self.road_tax_exempt,
            "withWasteAuthorizations": self.with_waste_authorizations,
            "withDriver": self.with_driver,
            "byAcquisitionType": self.by_acquisition_type,
            "byBodyType": self.by_body_type,
            "averagePayload": self.average_payload,
        }


class Fleet:
    """All records of one fleet file."""

    def __init__(
        self,
        vehicles: Optional[List[Vehicle]] = None,
        bookings: Optional[List[ServiceBooking]] = None,
        waste_registrations: Optional[List[Registration]] = None,
        haulier_registrations: Optional[List[Registration]] = None,
        windows: Optional[ExpirationWindows] = None,
        drivers: Optional[List[Driver]] = None,
    ):
        self.vehicles = vehicles or []
        self.bookings = bookings or []
        self.waste_registrations = waste_registrations or []
        self.haulier_registrations = haulier_registrations or []
        self.windows = windows or ExpirationWindows()
        self.drivers = drivers or []

    def registrations(self, kind: RegistrationKind) -> List[Registration]:
        if kind is RegistrationKind.WASTE_OPERATOR:
            return self.waste_registrations
        return self.haulier_registrations

    def get_vehicle(self, ref: str) -> Vehicle:
        """Find a vehicle by id or plate."""
        plate = ref.strip().upper()
        for vehicle in self.vehicles:
            if vehicle.id == ref or vehicle.plate == plate:
                return vehicle
        raise NotFoundError("Vehicle", ref)

    def get_driver(self, ref: str) -> Driver:
        """Find a driver by id or name."""
        for driver in self.drivers:
            if driver.id == ref or driver.name == ref.strip():
                return driver
        raise NotFoundError("Driver", ref)

    def get_booking(self, booking_id: str) -> ServiceBooking:
        for booking in self.bookings:
            if booking.id == booking_id:
                return booking
        raise NotFoundError("Booking", booking_id)

    def get_registration(self, kind: RegistrationKind, ref: str) -> Registration:
        """Find a registration by id or registration number."""
        for registration in self.registrations(kind):
            if registration.id == ref or registration.registration_number == ref:
                return registration
        raise NotFoundError(f"{kind.value} registration", ref)

    def expiration_report(
        self, today: Optional[date] = None, include_broken_down: bool = False
    ) -> ExpirationReport:
        return build_expiration_report(
            self.vehicles,
            self.waste_registrations,
            self.haulier_registrations,
            today=today,
            windows=self.windows,
            include_broken_down=include_broken_down,
            drivers=self.drivers,
        )

    def statistics(self) -> FleetStatistics:
        stats = FleetStatistics()
        for status in VehicleStatus:
            stats.by_status[status.value] = 0
        for vehicle in self.vehicles:
            stats.by_status[vehicle.status.value] += 1

        active = [v for v in self.vehicles if v.status is VehicleStatus.ACTIVE]
        stats.active = len(active)
        stats.with_restricted_zone_permit = sum(1 for v in active if v.has_restricted_zone_permit)
        stats.road_tax_exempt = sum(1 for v in active if v.road_tax_exempt)
        stats.with_waste_authorizations = sum(1 for v in active if v.waste_authorization_refs)
        stats.with_driver = sum(1 for v in active if v.driver and v.driver.strip())
        for vehicle in active:
            key = vehicle.acquisition_type.value
            stats.by_acquisition_type[key] = stats.by_acquisition_type.get(key, 0) + 1
            key = vehicle.body_type.value
            stats.by_body_type[key] = stats.by_body_type.get(key, 0) + 1

        payloads = [v.max_payload for v in active if v.max_payload and v.max_payload > 0]
        if payloads:
            stats.average_payload = round(sum(payloads) / len(payloads), 2)
        return stats
