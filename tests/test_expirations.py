#!/usr/bin/env python3
"""Tests for the fleet-wide expiration report."""
from datetime import date, timedelta

import pytest

from fleetcare import (
    AcquisitionType,
    ActivityType,
    BodyType,
    Category,
    DocumentType,
    Driver,
    DriverDocument,
    ExpirationWindows,
    HaulierRegistration,
    Tier,
    VehicleStatus,
    WasteOperatorRegistration,
    build_expiration_report,
)

TODAY = date(2025, 6, 1)


def in_days(n: int) -> date:
    return TODAY + timedelta(days=n)


class TestEmptyReport:
    """An empty fleet produces empty categories and zero counts."""

    def test_every_category_present_and_empty(self):
        report = build_expiration_report([], today=TODAY)
        assert set(report.categories) == set(Category)
        assert all(not r.entries for r in report.categories.values())
        assert report.total == 0
        assert report.total_overdue == 0

    def test_serialized_shape(self):
        d = build_expiration_report([], today=TODAY).to_dict()
        assert d["today"] == "2025-06-01"
        assert d["insurance"] == {
            "overdue": [],
            "dueSoon": [],
            "counts": {"total": 0, "overdue": 0, "dueSoon": 0, "byTier": {}, "lowTolerance": 0},
        }
        assert d["counts"]["total"] == 0


class TestVehicleCategories:
    """Tests for the per-vehicle categories."""

    def test_due_today_is_overdue(self, make_vehicle):
        vehicle = make_vehicle(insurance_due_date=TODAY)
        report = build_expiration_report([vehicle], today=TODAY)
        entry = report[Category.INSURANCE].entries[0]
        assert entry.days_remaining == 0
        assert entry.tier is Tier.OVERDUE
        assert entry.is_overdue

    def test_road_tax_window(self, make_vehicle):
        inside = make_vehicle(plate="IN1", road_tax_due_date=in_days(30))
        outside = make_vehicle(plate="OUT1", road_tax_due_date=in_days(31))
        report = build_expiration_report([inside, outside], today=TODAY)
        assert [e.label for e in report[Category.ROAD_TAX].entries] == ["IN1"]

    def test_road_tax_exempt_skipped(self, make_vehicle):
        vehicle = make_vehicle(road_tax_exempt=True, road_tax_due_date=in_days(1))
        report = build_expiration_report([vehicle], today=TODAY)
        assert report[Category.ROAD_TAX].entries == []

    def test_insurance_low_tolerance(self, make_vehicle):
        low = make_vehicle(plate="LOW1", insurance_due_date=in_days(14))
        edge = make_vehicle(plate="EDGE1", insurance_due_date=in_days(15))
        report = build_expiration_report([low, edge], today=TODAY)
        section = report[Category.INSURANCE]
        flags = {e.label: e.low_tolerance for e in section.entries}
        assert flags == {"LOW1": True, "EDGE1": False}
        assert section.counts["lowTolerance"] == 1

    @pytest.mark.parametrize(
        "days,tier",
        [(-3, Tier.OVERDUE), (7, Tier.CRITICAL), (8, Tier.URGENT), (30, Tier.URGENT),
         (31, Tier.WARNING), (60, Tier.WARNING)],
    )
    def test_permit_tiers(self, make_vehicle, days, tier):
        vehicle = make_vehicle(
            has_restricted_zone_permit=True,
            restricted_zone_permit_due_date=in_days(days),
            driver="Luca",
        )
        entry = build_expiration_report([vehicle], today=TODAY)[
            Category.RESTRICTED_ZONE_PERMIT
        ].entries[0]
        assert entry.tier is tier
        assert entry.details["driver"] == "Luca"

    def test_permit_outside_window(self, make_vehicle):
        vehicle = make_vehicle(
            has_restricted_zone_permit=True, restricted_zone_permit_due_date=in_days(61)
        )
        report = build_expiration_report([vehicle], today=TODAY)
        assert report[Category.RESTRICTED_ZONE_PERMIT].entries == []

    def test_permit_ignored_without_flag(self, make_vehicle):
        vehicle = make_vehicle(restricted_zone_permit_due_date=in_days(1))
        report = build_expiration_report([vehicle], today=TODAY)
        assert report[Category.RESTRICTED_ZONE_PERMIT].entries == []

    def test_property_title_only_for_leased_or_rented(self, make_vehicle):
        owned = make_vehicle(plate="OWN1", property_title_due_date=in_days(10))
        leased = make_vehicle(
            plate="LEA1",
            acquisition_type=AcquisitionType.LEASED,
            property_title_due_date=in_days(100),
        )
        rented = make_vehicle(
            plate="REN1",
            acquisition_type=AcquisitionType.RENTED,
            property_title_due_date=in_days(90),
        )
        section = build_expiration_report([owned, leased, rented], today=TODAY)[
            Category.PROPERTY_TITLE
        ]
        tiers = {e.label: e.tier for e in section.entries}
        assert tiers == {"REN1": Tier.URGENT, "LEA1": Tier.DUE}

    def test_annual_inspection_window(self, make_vehicle):
        soon = make_vehicle(
            plate="HT1",
            body_type=BodyType.HEAVY_TRACTOR,
            last_inspection_date=in_days(60) - timedelta(days=365),
        )
        later = make_vehicle(
            plate="HT2",
            body_type=BodyType.HEAVY_TRACTOR,
            last_inspection_date=in_days(90) - timedelta(days=365),
        )
        section = build_expiration_report([soon, later], today=TODAY)[Category.INSPECTION]
        assert [e.label for e in section.entries] == ["HT1"]
        assert section.entries[0].details["cadence"] == "annual"

    def test_standard_inspection_window_is_a_year(self, make_vehicle):
        vehicle = make_vehicle(
            body_type=BodyType.VAN,
            registration_date=date(2022, 3, 1),
            last_inspection_date=None,
        )
        section = build_expiration_report([vehicle], today=TODAY)[Category.INSPECTION]
        assert section.entries[0].due_date == date(2026, 3, 1)
        assert section.entries[0].tier is Tier.DUE

    def test_sorted_by_due_date(self, make_vehicle):
        vehicles = [
            make_vehicle(plate="C", insurance_due_date=in_days(20)),
            make_vehicle(plate="A", insurance_due_date=in_days(-5)),
            make_vehicle(plate="B", insurance_due_date=in_days(3)),
        ]
        section = build_expiration_report(vehicles, today=TODAY)[Category.INSURANCE]
        assert [e.label for e in section.entries] == ["A", "B", "C"]
        assert [e.label for e in section.overdue] == ["A"]
        assert [e.label for e in section.due_soon] == ["B", "C"]


class TestVehicleStatusScope:
    """Only active vehicles are scanned unless broken-down ones are included."""

    def test_inactive_vehicles_skipped(self, make_vehicle):
        vehicles = [
            make_vehicle(plate="S1", status=VehicleStatus.SOLD, insurance_due_date=TODAY),
            make_vehicle(plate="X1", status=VehicleStatus.SCRAPPED, insurance_due_date=TODAY),
            make_vehicle(plate="B1", status=VehicleStatus.BROKEN_DOWN, insurance_due_date=TODAY),
        ]
        assert build_expiration_report(vehicles, today=TODAY).total == 0

    def test_include_broken_down(self, make_vehicle):
        vehicle = make_vehicle(status=VehicleStatus.BROKEN_DOWN, insurance_due_date=TODAY)
        report = build_expiration_report([vehicle], today=TODAY, include_broken_down=True)
        assert report[Category.INSURANCE].entries[0].label == vehicle.plate


class TestRegistrationCategories:
    """Tests for the waste-operator and road-haulier categories."""

    def test_registration_tiers(self):
        waste = [
            WasteOperatorRegistration("W-1", date(2020, 1, 1), in_days(90), "4", "F"),
            WasteOperatorRegistration("W-2", date(2020, 1, 1), in_days(91), "5", "E"),
            WasteOperatorRegistration("W-3", date(2020, 1, 1), in_days(181), "5", "E"),
        ]
        section = build_expiration_report([], waste, today=TODAY)[Category.WASTE_REGISTRATION]
        tiers = {e.label: e.tier for e in section.entries}
        assert tiers == {"W-1": Tier.WITHIN_THREE_MONTHS, "W-2": Tier.WITHIN_SIX_MONTHS}
        assert section.entries[0].details["classification"] == "Category 4 - Class F"

    def test_haulier_expired(self):
        haulier = [
            HaulierRegistration(
                "H-1", date(2015, 1, 1), in_days(-1), "Lazio", "Roma", ActivityType.OWN_ACCOUNT
            )
        ]
        report = build_expiration_report([], haulier_registrations=haulier, today=TODAY)
        entry = report[Category.HAULIER_REGISTRATION].entries[0]
        assert entry.tier is Tier.OVERDUE
        assert report.total_overdue == 1



def licence(expiration_date, **overrides):
    return DriverDocument(DocumentType.LICENCE, "CE", expiration_date, **overrides)


class TestDriverDocuments:
    """Licences and qualifications of active drivers."""

    def test_window_and_overdue(self):
        driver = Driver(
            "Mario Rossi",
            licences=[licence(in_days(30))],
            qualifications=[
                DriverDocument(DocumentType.QUALIFICATION, "ADR Base", in_days(0)),
                DriverDocument(DocumentType.QUALIFICATION, "CQC Merci", in_days(31)),
            ],
            driver_id="d1",
        )
        section = build_expiration_report([], today=TODAY, drivers=[driver])[
            Category.DRIVER_DOCUMENT
        ]
        assert [(e.details["type"], e.tier) for e in section.entries] == [
            ("ADR Base", Tier.OVERDUE),
            ("CE", Tier.DUE),
        ]
        assert section.entries[0].entity_ref == "d1"
        assert section.entries[0].label == "Mario Rossi"
        assert section.entries[1].details["document"] == "licence"

    def test_withdrawn_and_undated_documents_skipped(self):
        driver = Driver(
            "Anna Bianchi",
            licences=[licence(in_days(5), valid=False)],
            qualifications=[DriverDocument(DocumentType.QUALIFICATION, "Muletto")],
        )
        report = build_expiration_report([], today=TODAY, drivers=[driver])
        assert report[Category.DRIVER_DOCUMENT].entries == []

    def test_inactive_driver_skipped(self):
        driver = Driver("Luca Verdi", licences=[licence(in_days(-10))], active=False)
        assert build_expiration_report([], today=TODAY, drivers=[driver]).total == 0

    def test_custom_window(self):
        driver = Driver("Mario Rossi", licences=[licence(in_days(45))])
        windows = ExpirationWindows(driver_document_days=60)
        report = build_expiration_report([], today=TODAY, windows=windows, drivers=[driver])
        assert report[Category.DRIVER_DOCUMENT].entries[0].days_remaining == 45

class TestWindows:
    """Windows come from configuration."""

    def test_custom_window(self, make_vehicle):
        vehicle = make_vehicle(road_tax_due_date=in_days(45))
        windows = ExpirationWindows(road_tax_days=60)
        report = build_expiration_report([vehicle], today=TODAY, windows=windows)
        assert len(report[Category.ROAD_TAX].entries) == 1
