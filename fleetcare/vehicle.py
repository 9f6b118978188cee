"""Vehicle class - fleet vehicle with its compliance dates."""

import uuid
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Optional

from .attachment import Attachment, AttachmentOwner
from .body_type import BodyType
from .calculations import InspectionSchedule, calc_next_inspection


class AcquisitionType(Enum):
    OWNED = "owned"
    LEASED = "leased"
    RENTED = "rented"

    @property
    def has_property_title(self) -> bool:
        """Leased and rented vehicles carry a contract end date."""
        return self is not AcquisitionType.OWNED


class VehicleStatus(Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    SOLD = "sold"
    SCRAPPED = "scrapped"
    BROKEN_DOWN = "broken-down"


class Vehicle(AttachmentOwner):
    """A fleet vehicle and the dates of its regulatory obligations."""

    def __init__(
            self,
            plate: str,
            make: str,
            model: str,
            body_type: BodyType,
            acquisition_type: AcquisitionType,
            registration_date: date,
            insurance_due_date: date,
            last_inspection_date: Optional[date] = None,
            road_tax_exempt: bool = False,
            road_tax_due_date: Optional[date] = None,
            has_restricted_zone_permit: bool = False,
            restricted_zone_permit_due_date: Optional[date] = None,
            property_title_due_date: Optional[date] = None,
            status: VehicleStatus = VehicleStatus.ACTIVE,
            waste_authorization_refs: Optional[Iterable[str]] = None,
            insurance_company: Optional[str] = None,
            insurance_policy_number: Optional[str] = None,
            chassis_number: Optional[str] = None,
            driver: Optional[str] = None,
            max_payload: Optional[float] = None,
            displacement_cc: Optional[float] = None,
            power_kw: Optional[float] = None,
            notes: Optional[str] = None,
            sold_on: Optional[date] = None,
            scrapped_on: Optional[date] = None,
            scrapper: Optional[str] = None,
            attachments: Optional[Dict[str, Attachment]] = None,
            updated_by: Optional[str] = None,
            vehicle_id: Optional[str] = None,
    ):
        self.id = vehicle_id or uuid.uuid4().hex
        self.plate = plate.strip().upper()
        self.make = make
        self.model = model
        self.body_type = body_type
        self.acquisition_type = acquisition_type
        self.registration_date = registration_date
        self.last_inspection_date = last_inspection_date
        self.road_tax_exempt = road_tax_exempt or False
        self.road_tax_due_date = road_tax_due_date
        self.insurance_due_date = insurance_due_date
        self.has_restricted_zone_permit = has_restricted_zone_permit or False
        self.restricted_zone_permit_due_date = restricted_zone_permit_due_date
        self.property_title_due_date = property_title_due_date
        self.status = status
        self.waste_authorization_refs = set(waste_authorization_refs or ())
        self.insurance_company = insurance_company
        self.insurance_policy_number = insurance_policy_number
        self.chassis_number = chassis_number
        self.driver = driver
        self.max_payload = max_payload
        self.displacement_cc = displacement_cc
        self.power_kw = power_kw
        self.notes = notes
        self.sold_on = sold_on
        self.scrapped_on = scrapped_on
        self.scrapper = scrapper
        self.attachments = dict(attachments or {})
        self.updated_by = updated_by

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.plate} ({self.make} {self.model})"

    @property
    def is_motor_vehicle(self) -> bool:
        return self.body_type.is_motor_vehicle

    @property
    def next_inspection(self) -> InspectionSchedule:
        return calc_next_inspection(
            self.body_type, self.registration_date, self.last_inspection_date
        )

    def mark_sold(self, sold_on: date) -> None:
        self.status = VehicleStatus.SOLD
        self.sold_on = sold_on

    def mark_scrapped(self, scrapped_on: date, scrapper: Optional[str] = None) -> None:
        self.status = VehicleStatus.SCRAPPED
        self.scrapped_on = scrapped_on
        self.scrapper = scrapper
