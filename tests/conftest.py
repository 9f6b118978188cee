"""Shared record factories for the test suite."""

from datetime import date, datetime

import pytest

from fleetcare import (
    AcquisitionType,
    BodyType,
    ServiceBooking,
    Vehicle,
)


def build_vehicle(**overrides) -> Vehicle:
    """An active owned van with every required date set."""
    fields = dict(
        plate="AB123CD",
        make="Iveco",
        model="Daily",
        body_type=BodyType.VAN,
        acquisition_type=AcquisitionType.OWNED,
        registration_date=date(2020, 1, 1),
        insurance_due_date=date(2030, 1, 1),
        road_tax_due_date=date(2030, 1, 1),
        last_inspection_date=date(2029, 1, 1),
    )
    fields.update(overrides)
    return Vehicle(**fields)


def build_booking(**overrides) -> ServiceBooking:
    """A scheduled booking of vehicle V1 on 2025-11-01 from 08:00 to 17:00."""
    fields = dict(
        title="Skip collection",
        vehicle_ref="V1",
        driver="Mario Rossi",
        start_time=datetime(2025, 11, 1, 8, 0),
        end_time=datetime(2025, 11, 1, 17, 0),
    )
    fields.update(overrides)
    return ServiceBooking(**fields)


@pytest.fixture
def make_vehicle():
    return build_vehicle


@pytest.fixture
def make_booking():
    return build_booking
