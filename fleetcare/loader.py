"""YAML loading and saving utilities for fleet data."""

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import yaml

from .attachment import Attachment
from .body_type import BodyType
from .booking import BookingStatus, Priority, RecurrenceRule, ServiceBooking, ServiceType
from .config import ExpirationWindows
from .driver import DocumentType, Driver, DriverDocument
from .errors import ValidationError
from .fleet import Fleet
from .registration import ActivityType, HaulierRegistration, WasteOperatorRegistration
from .vehicle import AcquisitionType, Vehicle, VehicleStatus

E = TypeVar("E", bound=Enum)


# =============================================================================
# Field parsing
# =============================================================================


def _require(dct: Dict[str, Any], key: str, where: str) -> Any:
    value = dct.get(key)
    if value is None or value == "":
        raise ValidationError(f"{where}: missing required field '{key}'", field=key)
    return value


def _parse_enum(enum_cls: Type[E], value: Any, key: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(
            f"Invalid {key} '{value}' (expected one of: {allowed})", field=key
        ) from None


def _parse_date(value: Any, key: str = "date") -> Optional[date]:
    """Accept YAML dates, datetimes and ISO strings."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {key} '{value}' (expected YYYY-MM-DD)", field=key) from None


def _parse_datetime(value: Any, key: str = "datetime") -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(
            f"Invalid {key} '{value}' (expected YYYY-MM-DDTHH:MM)", field=key
        ) from None


def _parse_date_or_datetime(value: Any, key: str) -> Optional[Union[date, datetime]]:
    """Keep a time part when one is given, otherwise return a plain date."""
    if isinstance(value, datetime) or (isinstance(value, str) and "T" in value):
        return _parse_datetime(value, key)
    return _parse_date(value, key)


def _iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values for cleaner YAML."""
    return {k: v for k, v in d.items() if v is not None}


# =============================================================================
# Records from dicts
# =============================================================================


def _parse_attachments(items: Optional[List[Dict[str, Any]]]) -> Dict[str, Attachment]:
    attachments = {}
    for dct in items or []:
        attachment = Attachment(
            _require(dct, "fileName", "attachment"),
            _require(dct, "reference", "attachment"),
            dct.get("kind") or "other",
            _parse_datetime(dct.get("uploadedAt"), "uploadedAt"),
            dct.get("id"),
        )
        attachments[attachment.id] = attachment
    return attachments


def parse_vehicle(dct: Dict[str, Any]) -> Vehicle:
    """Build a Vehicle from its camelCase YAML mapping."""
    where = f"vehicle {dct.get('plate') or dct.get('id') or '?'}"
    return Vehicle(
        plate=str(_require(dct, "plate", where)),
        make=_require(dct, "make", where),
        model=str(_require(dct, "model", where)),
        body_type=_parse_enum(BodyType, _require(dct, "bodyType", where), "bodyType"),
        acquisition_type=_parse_enum(
            AcquisitionType, _require(dct, "acquisitionType", where), "acquisitionType"
        ),
        registration_date=_parse_date(_require(dct, "registrationDate", where), "registrationDate"),
        insurance_due_date=_parse_date(_require(dct, "insuranceDueDate", where), "insuranceDueDate"),
        last_inspection_date=_parse_date(dct.get("lastInspectionDate"), "lastInspectionDate"),
        road_tax_exempt=bool(dct.get("roadTaxExempt")),
        road_tax_due_date=_parse_date(dct.get("roadTaxDueDate"), "roadTaxDueDate"),
        has_restricted_zone_permit=bool(dct.get("hasRestrictedZonePermit")),
        restricted_zone_permit_due_date=_parse_date(
            dct.get("restrictedZonePermitDueDate"), "restrictedZonePermitDueDate"
        ),
        property_title_due_date=_parse_date(dct.get("propertyTitleDueDate"), "propertyTitleDueDate"),
        status=_parse_enum(VehicleStatus, dct.get("status") or "active", "status"),
        waste_authorization_refs=dct.get("wasteAuthorizationRefs"),
        insurance_company=dct.get("insuranceCompany"),
        insurance_policy_number=dct.get("insurancePolicyNumber"),
        chassis_number=dct.get("chassisNumber"),
        driver=dct.get("driver"),
        max_payload=dct.get("maxPayload"),
        displacement_cc=dct.get("displacementCc"),
        power_kw=dct.get("powerKw"),
        notes=dct.get("notes"),
        sold_on=_parse_date(dct.get("soldOn"), "soldOn"),
        scrapped_on=_parse_date(dct.get("scrappedOn"), "scrappedOn"),
        scrapper=dct.get("scrapper"),
        attachments=_parse_attachments(dct.get("attachments")),
        updated_by=dct.get("updatedBy"),
        vehicle_id=dct.get("id"),
    )


def _registration_common(dct: Dict[str, Any], where: str) -> Dict[str, Any]:
    return {
        "registration_number": str(_require(dct, "registrationNumber", where)),
        "issue_date": _parse_date(_require(dct, "issueDate", where), "issueDate"),
        "expiration_date": _parse_date(_require(dct, "expirationDate", where), "expirationDate"),
        "attachments": _parse_attachments(dct.get("attachments")),
        "updated_by": dct.get("updatedBy"),
        "registration_id": dct.get("id"),
    }


def parse_waste_registration(dct: Dict[str, Any]) -> WasteOperatorRegistration:
    where = f"waste registration {dct.get('registrationNumber') or '?'}"
    return WasteOperatorRegistration(
        category=str(_require(dct, "category", where)),
        register_class=str(_require(dct, "class", where)),
        **_registration_common(dct, where),
    )


def parse_haulier_registration(dct: Dict[str, Any]) -> HaulierRegistration:
    where = f"haulier registration {dct.get('registrationNumber') or '?'}"
    return HaulierRegistration(
        region=_require(dct, "region", where),
        province=_require(dct, "province", where),
        activity_type=_parse_enum(
            ActivityType, _require(dct, "activityType", where), "activityType"
        ),
        third_party_number=dct.get("thirdPartyNumber"),
        **_registration_common(dct, where),
    )


def _parse_documents(
    items: Optional[List[Dict[str, Any]]], document_type: DocumentType, where: str
) -> List[DriverDocument]:
    documents = []
    for dct in items or []:
        expiration = dct.get("expirationDate")
        if document_type is DocumentType.LICENCE:
            expiration = _require(dct, "expirationDate", where)
        documents.append(
            DriverDocument(
                document_type,
                str(_require(dct, "type", where)),
                _parse_date(expiration, "expirationDate"),
                number=dct.get("number"),
                valid=dct.get("valid", True) is not False,
            )
        )
    return documents


def parse_driver(dct: Dict[str, Any]) -> Driver:
    where = f"driver {dct.get('name') or dct.get('id') or '?'}"
    return Driver(
        name=str(_require(dct, "name", where)),
        licences=_parse_documents(dct.get("licences"), DocumentType.LICENCE, where),
        qualifications=_parse_documents(
            dct.get("qualifications"), DocumentType.QUALIFICATION, where
        ),
        active=dct.get("active", True) is not False,
        phone=dct.get("phone"),
        driver_id=dct.get("id"),
    )


def parse_booking(dct: Dict[str, Any]) -> ServiceBooking:
    where = f"booking {dct.get('id') or dct.get('title') or '?'}"
    recurrence = None
    if dct.get("recurrence"):
        rec = dct["recurrence"]
        recurrence = RecurrenceRule(
            bool(rec.get("active")),
            rec.get("frequency"),
            _parse_date_or_datetime(rec.get("endDate"), "endDate"),
        )
    return ServiceBooking(
        title=_require(dct, "title", where),
        vehicle_ref=str(_require(dct, "vehicle", where)),
        driver=dct.get("driver"),
        start_time=_parse_datetime(_require(dct, "startTime", where), "startTime"),
        end_time=_parse_datetime(_require(dct, "endTime", where), "endTime"),
        service_type=_parse_enum(ServiceType, dct.get("serviceType") or "other", "serviceType"),
        status=_parse_enum(BookingStatus, dct.get("status") or "scheduled", "status"),
        priority=_parse_enum(Priority, dct.get("priority") or "medium", "priority"),
        recurrence=recurrence,
        description=dct.get("description"),
        notes=dct.get("notes"),
        completion_notes=dct.get("completionNotes"),
        completed_at=_parse_datetime(dct.get("completedAt"), "completedAt"),
        attachments=_parse_attachments(dct.get("attachments")),
        created_by=dct.get("createdBy"),
        updated_by=dct.get("updatedBy"),
        created_at=_parse_datetime(dct.get("createdAt"), "createdAt"),
        updated_at=_parse_datetime(dct.get("updatedAt"), "updatedAt"),
        booking_id=dct.get("id"),
    )


def parse_fleet(data: Optional[Dict[str, Any]]) -> Fleet:
    """Build a Fleet from the top-level YAML mapping."""
    data = data or {}
    settings = data.get("settings") or {}
    return Fleet(
        vehicles=[parse_vehicle(d) for d in data.get("vehicles") or []],
        bookings=[parse_booking(d) for d in data.get("bookings") or []],
        waste_registrations=[
            parse_waste_registration(d) for d in data.get("wasteRegistrations") or []
        ],
        haulier_registrations=[
            parse_haulier_registration(d) for d in data.get("haulierRegistrations") or []
        ],
        windows=ExpirationWindows.from_dict(settings.get("windows")),
        drivers=[parse_driver(d) for d in data.get("drivers") or []],
    )


def load_fleet(filename: Union[str, Path]) -> Fleet:
    """Load a fleet from a YAML file."""
    with open(filename, "rb") as fp:
        return parse_fleet(yaml.load(fp, Loader=yaml.SafeLoader))


# =============================================================================
# Records to dicts
# =============================================================================


def _attachments_to_list(attachments: Dict[str, Attachment]) -> Optional[List[Dict[str, Any]]]:
    if not attachments:
        return None
    return [
        _compact(
            {
                "id": a.id,
                "fileName": a.file_name,
                "reference": a.reference,
                "kind": a.kind,
                "uploadedAt": _iso(a.uploaded_at),
            }
        )
        for a in attachments.values()
    ]


def vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    """Serialize a Vehicle to the YAML dict format (camelCase keys)."""
    d = {
        "id": vehicle.id,
        "plate": vehicle.plate,
        "make": vehicle.make,
        "model": vehicle.model,
        "bodyType": vehicle.body_type.value,
        "acquisitionType": vehicle.acquisition_type.value,
        "status": vehicle.status.value,
        "registrationDate": _iso(vehicle.registration_date),
        "lastInspectionDate": _iso(vehicle.last_inspection_date),
        "roadTaxExempt": vehicle.road_tax_exempt or None,
        "roadTaxDueDate": _iso(vehicle.road_tax_due_date),
        "insuranceCompany": vehicle.insurance_company,
        "insurancePolicyNumber": vehicle.insurance_policy_number,
        "insuranceDueDate": _iso(vehicle.insurance_due_date),
        "hasRestrictedZonePermit": vehicle.has_restricted_zone_permit or None,
        "restrictedZonePermitDueDate": _iso(vehicle.restricted_zone_permit_due_date),
        "propertyTitleDueDate": _iso(vehicle.property_title_due_date),
        "wasteAuthorizationRefs": sorted(vehicle.waste_authorization_refs) or None,
        "chassisNumber": vehicle.chassis_number,
        "driver": vehicle.driver,
        "maxPayload": vehicle.max_payload,
        "displacementCc": vehicle.displacement_cc,
        "powerKw": vehicle.power_kw,
        "notes": vehicle.notes,
        "soldOn": _iso(vehicle.sold_on),
        "scrappedOn": _iso(vehicle.scrapped_on),
        "scrapper": vehicle.scrapper,
        "attachments": _attachments_to_list(vehicle.attachments),
        "updatedBy": vehicle.updated_by,
    }
    return _compact(d)


def waste_registration_to_dict(registration: WasteOperatorRegistration) -> Dict[str, Any]:
    return _compact(
        {
            "id": registration.id,
            "registrationNumber": registration.registration_number,
            "issueDate": _iso(registration.issue_date),
            "expirationDate": _iso(registration.expiration_date),
            "category": registration.category,
            "class": registration.register_class,
            "attachments": _attachments_to_list(registration.attachments),
            "updatedBy": registration.updated_by,
        }
    )


def haulier_registration_to_dict(registration: HaulierRegistration) -> Dict[str, Any]:
    return _compact(
        {
            "id": registration.id,
            "registrationNumber": registration.registration_number,
            "issueDate": _iso(registration.issue_date),
            "expirationDate": _iso(registration.expiration_date),
            "region": registration.region,
            "province": registration.province,
            "activityType": registration.activity_type.value,
            "thirdPartyNumber": registration.third_party_number,
            "attachments": _attachments_to_list(registration.attachments),
            "updatedBy": registration.updated_by,
        }
    )


def _documents_to_list(documents: List[DriverDocument]) -> Optional[List[Dict[str, Any]]]:
    if not documents:
        return None
    return [
        _compact(
            {
                "type": d.kind,
                "number": d.number,
                "expirationDate": _iso(d.expiration_date),
                "valid": None if d.valid else False,
            }
        )
        for d in documents
    ]


def driver_to_dict(driver: Driver) -> Dict[str, Any]:
    return _compact(
        {
            "id": driver.id,
            "name": driver.name,
            "phone": driver.phone,
            "active": None if driver.active else False,
            "licences": _documents_to_list(driver.licences),
            "qualifications": _documents_to_list(driver.qualifications),
        }
    )


def booking_to_dict(booking: ServiceBooking) -> Dict[str, Any]:
    recurrence = None
    if booking.recurrence is not None:
        rule = booking.recurrence
        frequency = rule.frequency.value if isinstance(rule.frequency, Enum) else rule.frequency
        recurrence = _compact(
            {"active": rule.active, "frequency": frequency, "endDate": _iso(rule.end_date)}
        )
    return _compact(
        {
            "id": booking.id,
            "title": booking.title,
            "vehicle": booking.vehicle_ref,
            "driver": booking.driver,
            "serviceType": booking.service_type.value,
            "startTime": _iso(booking.start_time),
            "endTime": _iso(booking.end_time),
            "status": booking.status.value,
            "priority": booking.priority.value,
            "recurrence": recurrence,
            "description": booking.description,
            "notes": booking.notes,
            "completionNotes": booking.completion_notes,
            "completedAt": _iso(booking.completed_at),
            "attachments": _attachments_to_list(booking.attachments),
            "createdBy": booking.created_by,
            "updatedBy": booking.updated_by,
            "createdAt": _iso(booking.created_at),
            "updatedAt": _iso(booking.updated_at),
        }
    )


def fleet_to_dict(fleet: Fleet) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    windows = fleet.windows.to_dict()
    if windows:
        data["settings"] = {"windows": windows}
    data["vehicles"] = [vehicle_to_dict(v) for v in fleet.vehicles]
    if fleet.drivers:
        data["drivers"] = [driver_to_dict(d) for d in fleet.drivers]
    data["wasteRegistrations"] = [
        waste_registration_to_dict(r) for r in fleet.waste_registrations
    ]
    data["haulierRegistrations"] = [
        haulier_registration_to_dict(r) for r in fleet.haulier_registrations
    ]
    data["bookings"] = [booking_to_dict(b) for b in fleet.bookings]
    return data


def save_fleet(filename: Union[str, Path], fleet: Fleet) -> None:
    """Write the whole fleet back to a YAML file."""
    with open(filename, "w") as fp:
        yaml.dump(
            fleet_to_dict(fleet),
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )
