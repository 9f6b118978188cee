#!/usr/bin/env python3
"""Validate fleet YAML files against the schema and the record rules."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from fleetcare.errors import FleetError, ValidationError as RecordError
from fleetcare.config import fleet_file_from_env
from fleetcare.loader import parse_fleet
from fleetcare.validation import validate_booking, validate_registration, validate_vehicle


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def check_records(data: dict) -> list[str]:
    """
    Check rules the schema cannot express.

    Required-iff dates, haulier provinces, booking intervals, duplicate plates
    and references between records.
    """
    errors = []
    try:
        fleet = parse_fleet(data)
    except FleetError as e:
        return [f"Record error: {e}"]

    plates = set()
    known = {r.id for r in fleet.waste_registrations}
    for vehicle in fleet.vehicles:
        try:
            validate_vehicle(vehicle)
        except RecordError as e:
            errors.append(f"vehicle {vehicle.plate}: {'; '.join(e.problems)}")
        if vehicle.plate in plates:
            errors.append(f"vehicle {vehicle.plate}: duplicate plate")
        plates.add(vehicle.plate)
        for ref in sorted(vehicle.waste_authorization_refs - known):
            errors.append(f"vehicle {vehicle.plate}: unknown waste registration '{ref}'")

    for registration in fleet.waste_registrations + fleet.haulier_registrations:
        try:
            validate_registration(registration)
        except RecordError as e:
            errors.append(
                f"registration {registration.registration_number}: {'; '.join(e.problems)}"
            )

    for booking in fleet.bookings:
        try:
            vehicle = fleet.get_vehicle(booking.vehicle_ref)
            booking.driver = booking.driver or vehicle.driver
            validate_booking(booking)
        except RecordError as e:
            errors.append(f"booking {booking.id}: {'; '.join(e.problems)}")
        except FleetError as e:
            errors.append(f"booking {booking.id}: {e}")

    return errors


def validate_fleet_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single fleet YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data or {}, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    else:
        errors.extend(check_records(data or {}))
    return errors


def main(argv=None):
    """Validate the given fleet files, or the default fleet file."""
    paths = [Path(p) for p in (sys.argv[1:] if argv is None else argv)]
    if not paths:
        paths = [fleet_file_from_env()]

    schema = load_schema()
    all_valid = True
    for filepath in paths:
        errors = validate_fleet_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
