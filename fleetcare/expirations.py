"""
Expiration aggregation across the fleet and the two registries.

Every active vehicle is checked for each obligation that applies to it
(inspection, road tax, insurance, restricted-zone permit, property title),
every registration for its own expiration, and every active driver for
their licences and qualifications. Obligations inside their
category's window are tiered and grouped per category, sorted by due date.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from .calculations import DateLike, check_tier, days_remaining
from .config import ExpirationWindows
from .driver import Driver, DriverDocument
from .expiration_due import Category, ExpirationDue
from .registration import Registration, RegistrationKind
from .tier import Tier
from .vehicle import Vehicle, VehicleStatus

logger = logging.getLogger(__name__)

VEHICLE_CATEGORIES = (
    Category.INSPECTION,
    Category.ROAD_TAX,
    Category.INSURANCE,
    Category.RESTRICTED_ZONE_PERMIT,
    Category.PROPERTY_TITLE,
)


@dataclass
class CategoryReport:
    """All entries of one category, sorted ascending by due date."""

    category: Category
    entries: List[ExpirationDue] = field(default_factory=list)

    @property
    def overdue(self) -> List[ExpirationDue]:
        return [e for e in self.entries if e.is_overdue]

    @property
    def due_soon(self) -> List[ExpirationDue]:
        return [e for e in self.entries if not e.is_overdue]

    def count(self, tier: Tier) -> int:
        return sum(1 for e in self.entries if e.tier is tier)

    @property
    def counts(self) -> Dict[str, Any]:
        by_tier = {}
        for entry in self.entries:
            by_tier[entry.tier.label] = by_tier.get(entry.tier.label, 0) + 1
        counts = {
            "total": len(self.entries),
            "overdue": len(self.overdue),
            "dueSoon": len(self.due_soon),
            "byTier": by_tier,
        }
        if self.category is Category.INSURANCE:
            counts["lowTolerance"] = sum(1 for e in self.entries if e.low_tolerance)
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overdue": [e.to_dict() for e in self.overdue],
            "dueSoon": [e.to_dict() for e in self.due_soon],
            "counts": self.counts,
        }


@dataclass
class ExpirationReport:
    """Per-category expiration lists as of `today`."""

    today: date
    categories: Dict[Category, CategoryReport]

    def __getitem__(self, category: Category) -> CategoryReport:
        return self.categories[category]

    @property
    def total(self) -> int:
        return sum(len(c.entries) for c in self.categories.values())

    @property
    def total_overdue(self) -> int:
        return sum(len(c.overdue) for c in self.categories.values())

    @property
    def counts(self) -> Dict[str, int]:
        """Scalar per-category totals for summary display."""
        counts = {c.value: len(r.entries) for c, r in self.categories.items()}
        counts["total"] = self.total
        counts["overdue"] = self.total_overdue
        return counts

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"today": self.today.isoformat()}
        for category, report in self.categories.items():
            d[category.value] = report.to_dict()
        d["counts"] = self.counts
        return d


# =============================================================================
# Per-category checks
# =============================================================================


def _vehicle_details(vehicle: Vehicle) -> Dict[str, Any]:
    return {"plate": vehicle.plate, "make": vehicle.make, "model": vehicle.model}


def _vehicle_entry(
    category: Category,
    vehicle: Vehicle,
    due: date,
    days: int,
    tier: Tier,
    **details,
) -> ExpirationDue:
    merged = _vehicle_details(vehicle)
    merged.update(details)
    low_tolerance = merged.pop("low_tolerance", False)
    return ExpirationDue(
        category=category,
        entity_ref=vehicle.id,
        label=vehicle.plate,
        due_date=due,
        days_remaining=days,
        tier=tier,
        low_tolerance=low_tolerance,
        details=merged,
    )


def check_inspection(
    vehicle: Vehicle, today: DateLike, windows: ExpirationWindows
) -> Optional[ExpirationDue]:
    """Annual-cadence vehicles are flagged 60 days out, the others a year out."""
    schedule = vehicle.next_inspection
    window = (
        windows.inspection_annual_days
        if schedule.is_annual
        else windows.inspection_standard_days
    )
    days = days_remaining(schedule.next_due, today)
    if days > window:
        return None
    return _vehicle_entry(
        Category.INSPECTION,
        vehicle,
        schedule.next_due,
        days,
        check_tier(days, [(window, Tier.DUE)]),
        bodyType=vehicle.body_type.value,
        cadence=schedule.cadence_label,
    )


def check_road_tax(
    vehicle: Vehicle, today: DateLike, windows: ExpirationWindows
) -> Optional[ExpirationDue]:
    if vehicle.road_tax_exempt or vehicle.road_tax_due_date is None:
        return None
    days = days_remaining(vehicle.road_tax_due_date, today)
    if days > windows.road_tax_days:
        return None
    return _vehicle_entry(
        Category.ROAD_TAX,
        vehicle,
        vehicle.road_tax_due_date,
        days,
        check_tier(days, [(windows.road_tax_days, Tier.DUE)]),
    )


def check_insurance(
    vehicle: Vehicle, today: DateLike, windows: ExpirationWindows
) -> Optional[ExpirationDue]:
    if vehicle.insurance_due_date is None:
        return None
    days = days_remaining(vehicle.insurance_due_date, today)
    if days > windows.insurance_days:
        return None
    return _vehicle_entry(
        Category.INSURANCE,
        vehicle,
        vehicle.insurance_due_date,
        days,
        check_tier(days, [(windows.insurance_days, Tier.DUE)]),
        low_tolerance=days < windows.insurance_low_tolerance_days,
        company=vehicle.insurance_company,
        policyNumber=vehicle.insurance_policy_number,
    )


def check_restricted_zone_permit(
    vehicle: Vehicle, today: DateLike, windows: ExpirationWindows
) -> Optional[ExpirationDue]:
    if not vehicle.has_restricted_zone_permit:
        return None
    if vehicle.restricted_zone_permit_due_date is None:
        return None
    days = days_remaining(vehicle.restricted_zone_permit_due_date, today)
    if days > windows.permit_days:
        return None
    tier = check_tier(
        days,
        [
            (windows.permit_critical_days, Tier.CRITICAL),
            (windows.permit_urgent_days, Tier.URGENT),
            (windows.permit_days, Tier.WARNING),
        ],
    )
    return _vehicle_entry(
        Category.RESTRICTED_ZONE_PERMIT,
        vehicle,
        vehicle.restricted_zone_permit_due_date,
        days,
        tier,
        driver=vehicle.driver,
    )


def check_property_title(
    vehicle: Vehicle, today: DateLike, windows: ExpirationWindows
) -> Optional[ExpirationDue]:
    if not vehicle.acquisition_type.has_property_title:
        return None
    if vehicle.property_title_due_date is None:
        return None
    days = days_remaining(vehicle.property_title_due_date, today)
    if days > windows.property_title_days:
        return None
    tier = check_tier(
        days,
        [
            (windows.property_title_urgent_days, Tier.URGENT),
            (windows.property_title_days, Tier.DUE),
        ],
    )
    return _vehicle_entry(
        Category.PROPERTY_TITLE,
        vehicle,
        vehicle.property_title_due_date,
        days,
        tier,
        acquisitionType=vehicle.acquisition_type.value,
    )


def check_registration(
    registration: Registration, today: DateLike, windows: ExpirationWindows
) -> Optional[ExpirationDue]:
    days = days_remaining(registration.expiration_date, today)
    if days > windows.registration_days:
        return None
    tier = check_tier(
        days,
        [
            (windows.registration_three_month_days, Tier.WITHIN_THREE_MONTHS),
            (windows.registration_days, Tier.WITHIN_SIX_MONTHS),
        ],
    )
    category = (
        Category.WASTE_REGISTRATION
        if registration.kind is RegistrationKind.WASTE_OPERATOR
        else Category.HAULIER_REGISTRATION
    )
    return ExpirationDue(
        category=category,
        entity_ref=registration.id,
        label=registration.registration_number,
        due_date=registration.expiration_date,
        days_remaining=days,
        tier=tier,
        details={
            "registrationNumber": registration.registration_number,
            "classification": registration.classification,
        },
    )


def check_driver_document(
    driver: Driver, document: DriverDocument, today: DateLike, windows: ExpirationWindows
) -> Optional[ExpirationDue]:
    if not document.tracked:
        return None
    days = days_remaining(document.expiration_date, today)
    if days > windows.driver_document_days:
        return None
    return ExpirationDue(
        category=Category.DRIVER_DOCUMENT,
        entity_ref=driver.id,
        label=driver.name,
        due_date=document.expiration_date,
        days_remaining=days,
        tier=check_tier(days, [(windows.driver_document_days, Tier.DUE)]),
        details={
            "document": document.document_type.value,
            "type": document.kind,
            "number": document.number,
            "phone": driver.phone,
        },
    )


VEHICLE_CHECKS = {
    Category.INSPECTION: check_inspection,
    Category.ROAD_TAX: check_road_tax,
    Category.INSURANCE: check_insurance,
    Category.RESTRICTED_ZONE_PERMIT: check_restricted_zone_permit,
    Category.PROPERTY_TITLE: check_property_title,
}


# =============================================================================
# Aggregation
# =============================================================================


def scanned_statuses(include_broken_down: bool = False) -> List[VehicleStatus]:
    """Vehicle statuses whose obligations are tracked."""
    if include_broken_down:
        return [VehicleStatus.ACTIVE, VehicleStatus.BROKEN_DOWN]
    return [VehicleStatus.ACTIVE]


def build_expiration_report(
    vehicles: Iterable[Vehicle],
    waste_registrations: Iterable[Registration] = (),
    haulier_registrations: Iterable[Registration] = (),
    today: Optional[DateLike] = None,
    windows: Optional[ExpirationWindows] = None,
    include_broken_down: bool = False,
    drivers: Iterable[Driver] = (),
) -> ExpirationReport:
    """
    Bucket every tracked obligation into its category.

    Args:
        today: Reference point for days remaining (default: today's date)
        windows: Inclusion windows and tier thresholds (default: standard)
        include_broken_down: Also scan broken-down vehicles
        drivers: Drivers whose licences and qualifications are tracked;
            inactive drivers are skipped
    """
    today = today or date.today()
    windows = windows or ExpirationWindows()
    statuses = scanned_statuses(include_broken_down)

    categories = {c: CategoryReport(c) for c in Category}

    scanned = 0
    for vehicle in vehicles:
        if vehicle.status not in statuses:
            continue
        scanned += 1
        for category, check in VEHICLE_CHECKS.items():
            entry = check(vehicle, today, windows)
            if entry is not None:
                categories[category].entries.append(entry)

    for registration in list(waste_registrations) + list(haulier_registrations):
        entry = check_registration(registration, today, windows)
        if entry is not None:
            categories[entry.category].entries.append(entry)

    for driver in drivers:
        if not driver.active:
            continue
        for document in driver.documents:
            entry = check_driver_document(driver, document, today, windows)
            if entry is not None:
                categories[Category.DRIVER_DOCUMENT].entries.append(entry)

    for report in categories.values():
        report.entries.sort(key=lambda e: (e.due_date, e.label))

    report_date = today.date() if isinstance(today, datetime) else today
    report = ExpirationReport(today=report_date, categories=categories)
    logger.debug(
        "Scanned %d vehicles: %d expirations, %d overdue",
        scanned,
        report.total,
        report.total_overdue,
    )
    return report
