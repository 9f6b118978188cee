"""
Record store over a fleet, optionally persisted to a YAML file.

Every mutation takes the store lock, validates, and writes the file back
when one is configured. If the mutation or the write fails, the in-memory
fleet is restored to its state before the call. The acting user is passed explicitly to each
mutation and recorded on the record.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

from .attachment import Attachment, AttachmentOwner
from .booking import BookingStatus, ServiceBooking
from .conflicts import ConflictQuery, ConflictResult, check_conflicts
from .errors import ConflictError, ValidationError
from .filters import BookingFilter, RegistrationFilter, VehicleFilter
from .fleet import Fleet
from .loader import load_fleet, save_fleet
from .recurrence import DEFAULT_OCCURRENCES, generate_recurring_bookings
from .registration import Registration, RegistrationKind
from .storage import LocalFileStorage
from .validation import (
    normalize_registration,
    normalize_vehicle,
    validate_booking,
    validate_registration,
    validate_vehicle,
)
from .vehicle import Vehicle, VehicleStatus

logger = logging.getLogger(__name__)

READ_ONLY_FIELDS = {"id", "attachments", "kind"}


@dataclass
class BookingOutcome:
    """A stored booking and the clashes found when it was stored."""

    booking: ServiceBooking
    conflicts: ConflictResult


def _apply_changes(record: Any, changes: Dict[str, Any]) -> Any:
    """Shallow-copy `record` and set each changed attribute on the copy."""
    updated = copy.copy(record)
    for key, value in changes.items():
        if key in READ_ONLY_FIELDS or key not in vars(record):
            raise ValidationError(f"Unknown or read-only field '{key}'", field=key)
        setattr(updated, key, value)
    return updated


class FleetStore:
    """CRUD over vehicles, bookings and registrations of one fleet."""

    def __init__(
        self,
        fleet: Optional[Fleet] = None,
        filename: Optional[Union[str, Path]] = None,
        storage: Optional[LocalFileStorage] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.fleet = fleet or Fleet()
        self.filename = Path(filename) if filename is not None else None
        self.storage = storage
        self.clock = clock
        self._lock = threading.RLock()

    @classmethod
    def open(cls, filename: Union[str, Path], **kwargs) -> "FleetStore":
        """Load a store from a fleet file; a missing file starts an empty fleet."""
        path = Path(filename)
        fleet = load_fleet(path) if path.exists() else Fleet()
        return cls(fleet, filename=path, **kwargs)

    def _save(self) -> None:
        if self.filename is not None:
            save_fleet(self.filename, self.fleet)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Hold the lock for a mutation and its save; roll back if either fails."""
        with self._lock:
            snapshot = copy.deepcopy(self.fleet)
            try:
                yield
                self._save()
            except BaseException:
                vars(self.fleet).update(vars(snapshot))
                raise

    # =========================================================================
    # Vehicles
    # =========================================================================

    def list_vehicles(self, where: Optional[VehicleFilter] = None) -> List[Vehicle]:
        vehicles = [v for v in self.fleet.vehicles if where is None or where.matches(v)]
        return sorted(vehicles, key=lambda v: v.plate)

    def get_vehicle(self, ref: str) -> Vehicle:
        return self.fleet.get_vehicle(ref)

    def _check_vehicle(self, vehicle: Vehicle, replacing: Optional[Vehicle] = None) -> None:
        normalize_vehicle(vehicle)
        validate_vehicle(vehicle)
        for other in self.fleet.vehicles:
            if other is not replacing and other.plate == vehicle.plate:
                raise ValidationError(f"Plate {vehicle.plate} already exists", field="plate")
        known = {r.id for r in self.fleet.waste_registrations}
        unknown = sorted(vehicle.waste_authorization_refs - known)
        if unknown:
            raise ValidationError(
                f"Unknown waste-operator registration(s): {', '.join(unknown)}",
                field="waste_authorization_refs",
            )

    def create_vehicle(self, vehicle: Vehicle, actor: Optional[str] = None) -> Vehicle:
        with self._transaction():
            self._check_vehicle(vehicle)
            vehicle.updated_by = actor
            self.fleet.vehicles.append(vehicle)
        logger.info("Created vehicle %s", vehicle.plate)
        return vehicle

    def update_vehicle(
        self, ref: str, changes: Dict[str, Any], actor: Optional[str] = None
    ) -> Vehicle:
        """
        Apply field changes to a vehicle.

        Fields whose trigger condition no longer holds are cleared, so turning
        off `has_restricted_zone_permit` also drops the permit's due date.
        """
        with self._transaction():
            current = self.get_vehicle(ref)
            updated = _apply_changes(current, changes)
            updated.plate = updated.plate.strip().upper()
            updated.waste_authorization_refs = set(updated.waste_authorization_refs)
            self._check_vehicle(updated, replacing=current)
            updated.updated_by = actor
            index = self.fleet.vehicles.index(current)
            self.fleet.vehicles[index] = updated
        logger.info("Updated vehicle %s", updated.plate)
        return updated

    def sell_vehicle(self, ref: str, sold_on: date, actor: Optional[str] = None) -> Vehicle:
        with self._transaction():
            vehicle = self.get_vehicle(ref)
            vehicle.mark_sold(sold_on)
            vehicle.updated_by = actor
        return vehicle

    def scrap_vehicle(
        self,
        ref: str,
        scrapped_on: date,
        scrapper: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Vehicle:
        with self._transaction():
            vehicle = self.get_vehicle(ref)
            vehicle.mark_scrapped(scrapped_on, scrapper)
            vehicle.updated_by = actor
        return vehicle

    def set_vehicle_status(
        self, ref: str, status: VehicleStatus, actor: Optional[str] = None
    ) -> Vehicle:
        return self.update_vehicle(ref, {"status": status}, actor)

    def delete_vehicle(self, ref: str) -> Vehicle:
        with self._transaction():
            vehicle = self.get_vehicle(ref)
            self.fleet.vehicles.remove(vehicle)
        self._delete_files(vehicle.attachments.values())
        logger.info("Deleted vehicle %s", vehicle.plate)
        return vehicle

    # =========================================================================
    # Registrations
    # =========================================================================

    def list_registrations(
        self, kind: RegistrationKind, where: Optional[RegistrationFilter] = None
    ) -> List[Registration]:
        registrations = [
            r for r in self.fleet.registrations(kind) if where is None or where.matches(r)
        ]
        return sorted(registrations, key=lambda r: r.expiration_date)

    def get_registration(self, kind: RegistrationKind, ref: str) -> Registration:
        return self.fleet.get_registration(kind, ref)

    def _check_registration(
        self, registration: Registration, replacing: Optional[Registration] = None
    ) -> None:
        normalize_registration(registration)
        validate_registration(registration)
        for other in self.fleet.registrations(registration.kind):
            if other is not replacing and other.registration_number == registration.registration_number:
                raise ValidationError(
                    f"Registration number {registration.registration_number} already exists",
                    field="registration_number",
                )

    def create_registration(
        self, registration: Registration, actor: Optional[str] = None
    ) -> Registration:
        with self._transaction():
            self._check_registration(registration)
            registration.updated_by = actor
            self.fleet.registrations(registration.kind).append(registration)
        logger.info(
            "Created %s registration %s",
            registration.kind.value,
            registration.registration_number,
        )
        return registration

    def update_registration(
        self,
        kind: RegistrationKind,
        ref: str,
        changes: Dict[str, Any],
        actor: Optional[str] = None,
    ) -> Registration:
        with self._transaction():
            current = self.get_registration(kind, ref)
            updated = _apply_changes(current, changes)
            self._check_registration(updated, replacing=current)
            updated.updated_by = actor
            registrations = self.fleet.registrations(kind)
            registrations[registrations.index(current)] = updated
        return updated

    def delete_registration(self, kind: RegistrationKind, ref: str) -> Registration:
        """Remove a registration; vehicles stop referring to it."""
        with self._transaction():
            registration = self.get_registration(kind, ref)
            self.fleet.registrations(kind).remove(registration)
            if kind is RegistrationKind.WASTE_OPERATOR:
                for vehicle in self.fleet.vehicles:
                    vehicle.waste_authorization_refs.discard(registration.id)
        self._delete_files(registration.attachments.values())
        return registration

    # =========================================================================
    # Bookings
    # =========================================================================

    def list_bookings(self, where: Optional[BookingFilter] = None) -> List[ServiceBooking]:
        bookings = [b for b in self.fleet.bookings if where is None or where.matches(b)]
        return sorted(bookings, key=lambda b: (b.start_time, b.id))

    def get_booking(self, booking_id: str) -> ServiceBooking:
        return self.fleet.get_booking(booking_id)

    def check_conflicts(self, query: ConflictQuery) -> ConflictResult:
        """Advisory check against the stored calendar."""
        return check_conflicts(query, self.fleet.bookings)

    def book_service(
        self,
        booking: ServiceBooking,
        actor: Optional[str] = None,
        reject_conflicts: bool = False,
    ) -> BookingOutcome:
        """
        Store a new booking and report clashes with existing ones.

        The vehicle must exist; a missing driver defaults to the vehicle's
        driver. With `reject_conflicts`, the check and the insert happen under
        the store lock and a clash raises ConflictError instead of storing.
        """
        if not booking.vehicle_ref:
            raise ValidationError("Vehicle is required", field="vehicle_ref")
        with self._transaction():
            vehicle = self.get_vehicle(booking.vehicle_ref)
            booking.vehicle_ref = vehicle.id
            if not booking.driver and vehicle.driver:
                booking.driver = vehicle.driver
            validate_booking(booking)
            result = self.check_conflicts(ConflictQuery.for_booking(booking))
            if result.has_conflicts and reject_conflicts:
                raise ConflictError(result.conflicts)
            now = self.clock()
            booking.created_by = actor
            booking.updated_by = actor
            booking.created_at = now
            booking.updated_at = now
            self.fleet.bookings.append(booking)
        if result.has_conflicts:
            logger.warning(
                "Booking %s stored with %d conflict(s)", booking.id, len(result.conflicts)
            )
        return BookingOutcome(booking=booking, conflicts=result)

    def update_booking(
        self, booking_id: str, changes: Dict[str, Any], actor: Optional[str] = None
    ) -> ServiceBooking:
        """Change booking fields. Status changes go through transition_booking."""
        if "status" in changes:
            raise ValidationError(
                "Status changes must use transition_booking", field="status"
            )
        with self._transaction():
            current = self.get_booking(booking_id)
            updated = _apply_changes(current, changes)
            if "vehicle_ref" in changes:
                updated.vehicle_ref = self.get_vehicle(updated.vehicle_ref).id
            validate_booking(updated)
            updated.updated_by = actor
            updated.updated_at = self.clock()
            self.fleet.bookings[self.fleet.bookings.index(current)] = updated
        return updated

    def transition_booking(
        self, booking_id: str, status: BookingStatus, actor: Optional[str] = None
    ) -> ServiceBooking:
        with self._transaction():
            booking = self.get_booking(booking_id)
            previous = booking.status
            now = self.clock()
            booking.transition_to(status, at=now)
            booking.updated_by = actor
            booking.updated_at = now
        logger.info("Booking %s: %s -> %s", booking.id, previous.value, status.value)
        return booking

    def delete_booking(self, booking_id: str) -> ServiceBooking:
        with self._transaction():
            booking = self.get_booking(booking_id)
            self.fleet.bookings.remove(booking)
        self._delete_files(booking.attachments.values())
        return booking

    def generate_recurring(
        self,
        booking_id: str,
        count: int = DEFAULT_OCCURRENCES,
        actor: Optional[str] = None,
        save: bool = False,
    ) -> List[BookingOutcome]:
        """
        Generate drafts from a booking's recurrence rule.

        Without `save` the drafts are only conflict-checked against the stored
        calendar. With `save` each draft is stored as a new booking in order,
        so later drafts are also checked against earlier ones; either every
        draft is stored or, if one fails, none is.
        """
        template = self.get_booking(booking_id)
        drafts = generate_recurring_bookings(template, count, actor)
        if not save:
            return [
                BookingOutcome(d, self.check_conflicts(ConflictQuery.for_booking(d)))
                for d in drafts
            ]
        with self._transaction():
            return [self.book_service(d, actor) for d in drafts]

    # =========================================================================
    # Attachments
    # =========================================================================

    def _require_storage(self) -> LocalFileStorage:
        if self.storage is None:
            raise ValidationError("No file storage configured", field="attachments")
        return self.storage

    def _attach(
        self, owner: AttachmentOwner, folder: str, file_name: str, content: bytes, kind: str
    ) -> Attachment:
        storage = self._require_storage()
        reference = storage.save(folder, file_name, content)
        try:
            with self._transaction():
                attachment = owner.add_attachment(
                    Attachment(file_name, reference, kind, self.clock())
                )
        except Exception:
            storage.delete(reference)
            raise
        return attachment

    def _detach(self, owner: AttachmentOwner, attachment_id: str) -> Attachment:
        with self._transaction():
            attachment = owner.remove_attachment(attachment_id)
        self._delete_files([attachment])
        return attachment

    def _delete_files(self, attachments: Iterable[Attachment]) -> None:
        if self.storage is None:
            return
        for attachment in list(attachments):
            if not self.storage.delete(attachment.reference):
                logger.warning("Attachment file already missing: %s", attachment.reference)

    def attach_to_vehicle(
        self, ref: str, file_name: str, content: bytes, kind: str = "other"
    ) -> Attachment:
        vehicle = self.get_vehicle(ref)
        return self._attach(vehicle, f"vehicles/{vehicle.id}", file_name, content, kind)

    def detach_from_vehicle(self, ref: str, attachment_id: str) -> Attachment:
        return self._detach(self.get_vehicle(ref), attachment_id)

    def attach_to_booking(
        self, booking_id: str, file_name: str, content: bytes, kind: str = "other"
    ) -> Attachment:
        booking = self.get_booking(booking_id)
        return self._attach(booking, f"bookings/{booking.id}", file_name, content, kind)

    def detach_from_booking(self, booking_id: str, attachment_id: str) -> Attachment:
        return self._detach(self.get_booking(booking_id), attachment_id)
