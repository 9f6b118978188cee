#!/usr/bin/env python3
"""Tests for YAML loading and saving utilities."""

from datetime import date, datetime

import pytest
import yaml

from fleetcare import (
    AcquisitionType,
    ActivityType,
    BodyType,
    BookingStatus,
    DocumentType,
    Fleet,
    Frequency,
    RecurrenceRule,
    ServiceType,
    ValidationError,
    Vehicle,
    VehicleStatus,
    load_fleet,
    save_fleet,
)
from fleetcare.loader import booking_to_dict, driver_to_dict, parse_vehicle, vehicle_to_dict

FLEET_YAML = """
settings:
  windows:
    roadTaxDays: 45

vehicles:
  - id: v1
    plate: ab123cd
    make: Iveco
    model: Daily
    bodyType: van
    acquisitionType: leased
    registrationDate: 2020-01-01
    insuranceDueDate: '2026-01-31'
    roadTaxDueDate: 2026-02-28
    propertyTitleDueDate: 2027-01-01
    hasRestrictedZonePermit: true
    restrictedZonePermitDueDate: 2025-12-31
    driver: Mario Rossi
    wasteAuthorizationRefs: [w1]
    attachments:
      - id: a1
        fileName: booklet.pdf
        reference: vehicles/v1/1-booklet.pdf
        kind: registration

drivers:
  - id: d1
    name: Mario Rossi
    licences:
      - type: CE
        number: MI5123456X
        expirationDate: 2027-05-14
    qualifications:
      - type: ADR Base
        expirationDate: 2025-12-15
      - type: Muletto
        valid: false

wasteRegistrations:
  - id: w1
    registrationNumber: MI/001234
    issueDate: 2020-05-01
    expirationDate: 2030-05-01
    category: 4
    class: F

haulierRegistrations:
  - id: h1
    registrationNumber: AH-77
    issueDate: 2019-01-01
    expirationDate: 2029-01-01
    region: Lombardia
    province: Milano
    activityType: third-party
    thirdPartyNumber: TP-9

bookings:
  - id: b1
    title: Weekly skip swap
    vehicle: v1
    driver: Mario Rossi
    serviceType: collection
    startTime: '2025-11-03T08:00'
    endTime: '2025-11-03T12:00'
    recurrence:
      active: true
      frequency: weekly
      endDate: 2025-12-31
"""


# =============================================================================
# load_fleet tests
# =============================================================================


class TestLoadFleet:
    """Tests for load_fleet function."""

    def test_loads_full_fleet(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        path.write_text(FLEET_YAML)

        fleet = load_fleet(path)

        assert isinstance(fleet, Fleet)
        assert fleet.windows.road_tax_days == 45

        vehicle = fleet.vehicles[0]
        assert isinstance(vehicle, Vehicle)
        assert vehicle.plate == "AB123CD"
        assert vehicle.body_type is BodyType.VAN
        assert vehicle.acquisition_type is AcquisitionType.LEASED
        assert vehicle.status is VehicleStatus.ACTIVE
        assert vehicle.insurance_due_date == date(2026, 1, 31)
        assert vehicle.waste_authorization_refs == {"w1"}
        assert vehicle.attachments["a1"].kind == "registration"

        waste = fleet.waste_registrations[0]
        assert waste.category == "4"
        assert waste.register_class == "F"

        haulier = fleet.haulier_registrations[0]
        assert haulier.activity_type is ActivityType.THIRD_PARTY
        assert haulier.third_party_number == "TP-9"

        booking = fleet.bookings[0]
        assert booking.vehicle_ref == "v1"
        assert booking.service_type is ServiceType.COLLECTION
        assert booking.status is BookingStatus.SCHEDULED
        assert booking.start_time == datetime(2025, 11, 3, 8, 0)
        assert booking.recurrence.frequency == Frequency.WEEKLY.value
        assert booking.recurrence.end_date == date(2025, 12, 31)
        assert not isinstance(booking.recurrence.end_date, datetime)

        driver = fleet.drivers[0]
        assert driver.name == "Mario Rossi"
        assert driver.licences[0].expiration_date == date(2027, 5, 14)
        assert driver.licences[0].document_type is DocumentType.LICENCE
        assert [q.kind for q in driver.qualifications] == ["ADR Base", "Muletto"]
        assert driver.qualifications[1].valid is False
        assert driver.qualifications[1].expiration_date is None

    def test_empty_file_is_empty_fleet(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        fleet = load_fleet(path)
        assert fleet.vehicles == []
        assert fleet.bookings == []

    def test_missing_required_field(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("vehicles:\n  - plate: XX1\n    make: Fiat\n")
        with pytest.raises(ValidationError) as exc_info:
            load_fleet(path)
        assert exc_info.value.field == "model"

    def test_invalid_enum_value(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(
            FLEET_YAML.replace("bodyType: van", "bodyType: spaceship")
        )
        with pytest.raises(ValidationError) as exc_info:
            load_fleet(path)
        assert "spaceship" in str(exc_info.value)

    def test_licence_requires_expiration(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(FLEET_YAML.replace("        expirationDate: 2027-05-14\n", ""))
        with pytest.raises(ValidationError) as exc_info:
            load_fleet(path)
        assert exc_info.value.field == "expirationDate"

    def test_invalid_date(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(FLEET_YAML.replace("'2026-01-31'", "'31/01/2026'"))
        with pytest.raises(ValidationError):
            load_fleet(path)


# =============================================================================
# save_fleet tests
# =============================================================================


class TestSaveFleet:
    """Tests for save_fleet function."""

    def test_round_trip(self, tmp_path):
        source = tmp_path / "fleet.yaml"
        source.write_text(FLEET_YAML)
        fleet = load_fleet(source)

        target = tmp_path / "saved.yaml"
        save_fleet(target, fleet)
        reloaded = load_fleet(target)

        assert vehicle_to_dict(reloaded.vehicles[0]) == vehicle_to_dict(fleet.vehicles[0])
        assert booking_to_dict(reloaded.bookings[0]) == booking_to_dict(fleet.bookings[0])
        assert reloaded.windows == fleet.windows
        assert reloaded.haulier_registrations[0].third_party_number == "TP-9"
        assert driver_to_dict(reloaded.drivers[0]) == driver_to_dict(fleet.drivers[0])

    def test_camel_case_keys_and_no_nulls(self, tmp_path, make_vehicle):
        path = tmp_path / "fleet.yaml"
        save_fleet(path, Fleet(vehicles=[make_vehicle(vehicle_id="v9")]))

        data = yaml.safe_load(path.read_text())

        assert "settings" not in data
        vehicle = data["vehicles"][0]
        assert vehicle["id"] == "v9"
        assert vehicle["bodyType"] == "van"
        assert vehicle["registrationDate"] == "2020-01-01"
        assert "propertyTitleDueDate" not in vehicle
        assert None not in vehicle.values()


class TestParseVehicle:
    """Tests for parse_vehicle defaults."""

    def test_status_defaults_to_active(self):
        vehicle = parse_vehicle(
            {
                "plate": "ZZ1",
                "make": "Fiat",
                "model": 500,
                "bodyType": "car",
                "acquisitionType": "owned",
                "registrationDate": date(2021, 1, 1),
                "insuranceDueDate": "2026-01-01",
            }
        )
        assert vehicle.status is VehicleStatus.ACTIVE
        assert vehicle.model == "500"
        assert vehicle.road_tax_exempt is False


class TestRecurrenceEndDate:
    """Tests for recurrence end dates with and without a time part."""

    def test_datetime_end_survives_round_trip(self, tmp_path, make_booking):
        booking = make_booking(
            recurrence=RecurrenceRule(True, "weekly", datetime(2025, 12, 22, 18, 30))
        )
        path = tmp_path / "fleet.yaml"
        save_fleet(path, Fleet(bookings=[booking]))

        reloaded = load_fleet(path).bookings[0]

        assert reloaded.recurrence.end_date == datetime(2025, 12, 22, 18, 30)
        assert yaml.safe_load(path.read_text())["bookings"][0]["recurrence"]["endDate"] == (
            "2025-12-22T18:30:00"
        )

    def test_plain_date_end_stays_date(self, tmp_path, make_booking):
        booking = make_booking(recurrence=RecurrenceRule(True, "weekly", date(2025, 12, 22)))
        path = tmp_path / "fleet.yaml"
        save_fleet(path, Fleet(bookings=[booking]))

        end = load_fleet(path).bookings[0].recurrence.end_date

        assert end == date(2025, 12, 22)
        assert not isinstance(end, datetime)
