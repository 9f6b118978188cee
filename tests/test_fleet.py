#!/usr/bin/env python3
"""Tests for the Fleet aggregate."""
from datetime import date

import pytest

from fleetcare import (
    AcquisitionType,
    BodyType,
    Category,
    DocumentType,
    Driver,
    DriverDocument,
    ExpirationWindows,
    Fleet,
    NotFoundError,
    RegistrationKind,
    VehicleStatus,
    WasteOperatorRegistration,
)


class TestLookups:
    """Tests for record lookups."""

    def test_vehicle_by_id_or_plate(self, make_vehicle):
        vehicle = make_vehicle(vehicle_id="v-1")
        fleet = Fleet(vehicles=[vehicle])
        assert fleet.get_vehicle("v-1") is vehicle
        assert fleet.get_vehicle("ab123cd") is vehicle

    def test_missing_vehicle(self):
        with pytest.raises(NotFoundError) as exc_info:
            Fleet().get_vehicle("ZZ999ZZ")
        assert str(exc_info.value) == "Vehicle not found: ZZ999ZZ"

    def test_missing_booking(self):
        with pytest.raises(NotFoundError):
            Fleet().get_booking("nope")

    def test_registration_by_number(self):
        registration = WasteOperatorRegistration(
            "MI/001", date(2020, 1, 1), date(2030, 1, 1), "4", "F"
        )
        fleet = Fleet(waste_registrations=[registration])
        assert fleet.get_registration(RegistrationKind.WASTE_OPERATOR, "MI/001") is registration
        with pytest.raises(NotFoundError):
            fleet.get_registration(RegistrationKind.ROAD_HAULIER, "MI/001")

    def test_driver_by_id_or_name(self):
        driver = Driver("Mario Rossi", driver_id="d1")
        fleet = Fleet(drivers=[driver])
        assert fleet.get_driver("d1") is driver
        assert fleet.get_driver(" Mario Rossi ") is driver
        with pytest.raises(NotFoundError) as exc_info:
            fleet.get_driver("Anna Bianchi")
        assert str(exc_info.value) == "Driver not found: Anna Bianchi"


class TestExpirationReport:
    """The fleet's configured windows apply to its report."""

    def test_uses_fleet_windows(self, make_vehicle):
        vehicle = make_vehicle(road_tax_due_date=date(2025, 7, 15))
        fleet = Fleet(vehicles=[vehicle], windows=ExpirationWindows(road_tax_days=60))
        report = fleet.expiration_report(today=date(2025, 6, 1))
        assert len(report[Category.ROAD_TAX].entries) == 1
        assert len(Fleet(vehicles=[vehicle]).expiration_report(date(2025, 6, 1))[
            Category.ROAD_TAX
        ].entries) == 0

    def test_includes_driver_documents(self):
        driver = Driver(
            "Mario Rossi",
            licences=[DriverDocument(DocumentType.LICENCE, "C", date(2025, 6, 20))],
        )
        report = Fleet(drivers=[driver]).expiration_report(today=date(2025, 6, 1))
        assert report[Category.DRIVER_DOCUMENT].entries[0].days_remaining == 19


class TestStatistics:
    """Tests for Fleet.statistics."""

    def test_empty_fleet(self):
        stats = Fleet().statistics()
        assert stats.active == 0
        assert stats.by_status["active"] == 0
        assert stats.average_payload is None

    def test_counts(self, make_vehicle):
        fleet = Fleet(
            vehicles=[
                make_vehicle(plate="A1", driver="Mario", max_payload=1000),
                make_vehicle(
                    plate="A2",
                    body_type=BodyType.HEAVY_TRACTOR,
                    acquisition_type=AcquisitionType.LEASED,
                    property_title_due_date=date(2027, 1, 1),
                    has_restricted_zone_permit=True,
                    max_payload=2500,
                ),
                make_vehicle(plate="A3", road_tax_exempt=True, waste_authorization_refs=["w"]),
                make_vehicle(plate="S1", status=VehicleStatus.SOLD, driver="Gone"),
            ]
        )
        stats = fleet.statistics()
        assert stats.active == 3
        assert stats.by_status == {
            "active": 3,
            "closed": 0,
            "sold": 1,
            "scrapped": 0,
            "broken-down": 0,
        }
        assert stats.with_driver == 1
        assert stats.with_restricted_zone_permit == 1
        assert stats.road_tax_exempt == 1
        assert stats.with_waste_authorizations == 1
        assert stats.by_acquisition_type == {"owned": 2, "leased": 1}
        assert stats.by_body_type == {"van": 2, "heavy-tractor": 1}
        assert stats.average_payload == 1750.0
