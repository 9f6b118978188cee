#!/usr/bin/env python3
"""
Unified CLI for fleet compliance and service bookings.

Commands:
  expirations  - Show overdue and upcoming obligations across the fleet
  inspection   - Show the next inspection due date for a vehicle
  vehicles     - List vehicles
  stats        - Show fleet statistics
  bookings     - List service bookings
  conflicts    - Check a time slot for vehicle/driver double-booking
  book         - Create a service booking
  transition   - Change a booking's status
  recur        - Generate the next occurrences of a recurring booking
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from tabulate import tabulate

from fleetcare import (
    BodyType,
    BookingFilter,
    BookingStatus,
    Category,
    ConflictQuery,
    ExpirationDue,
    FleetError,
    FleetStore,
    Frequency,
    Priority,
    RecurrenceRule,
    ServiceBooking,
    ServiceType,
    VehicleFilter,
    VehicleStatus,
)
from fleetcare.config import fleet_file_from_env
from fleetcare.conflicts import BookingSummary

# =============================================================================
# Formatting helpers
# =============================================================================


def format_days(days: Optional[int]) -> str:
    """Format remaining days for display (e.g., '3mo 15d' or '-2mo 5d')."""
    if days is None:
        return "-"
    sign = "-" if days < 0 else ""
    days = abs(days)
    months = days // 30
    remaining_days = days % 30
    if months > 0:
        return f"{sign}{months}mo {remaining_days}d"
    return f"{sign}{days}d"


def format_date(value: Optional[date]) -> str:
    return value.isoformat() if value is not None else "-"


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value is not None else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


CATEGORY_TITLES = {
    Category.INSPECTION: "INSPECTIONS",
    Category.ROAD_TAX: "ROAD TAX",
    Category.INSURANCE: "INSURANCE",
    Category.RESTRICTED_ZONE_PERMIT: "RESTRICTED-ZONE PERMITS",
    Category.PROPERTY_TITLE: "PROPERTY TITLES",
    Category.WASTE_REGISTRATION: "WASTE-OPERATOR REGISTRATIONS",
    Category.HAULIER_REGISTRATION: "ROAD-HAULIER REGISTRATIONS",
    Category.DRIVER_DOCUMENT: "DRIVER LICENCES AND QUALIFICATIONS",
}


def make_expiration_table(entries: List[ExpirationDue]) -> List[List[str]]:
    """Convert expiration entries to table rows."""
    rows = []
    for entry in entries:
        flags = []
        if entry.low_tolerance:
            flags.append("low tolerance")
        if "cadence" in entry.details:
            flags.append(entry.details["cadence"])
        if "document" in entry.details:
            flags.append(f"{entry.details['document']} {entry.details['type']}")
        rows.append(
            [
                entry.label,
                format_date(entry.due_date),
                format_days(entry.days_remaining),
                entry.tier.label,
                ", ".join(flags) or "-",
            ]
        )
    return rows


def make_booking_table(bookings: List[ServiceBooking]) -> List[List[str]]:
    rows = []
    for booking in bookings:
        rows.append(
            [
                booking.id,
                format_datetime(booking.start_time),
                format_datetime(booking.end_time),
                booking.vehicle_ref,
                booking.driver or "-",
                booking.status.value,
                truncate(booking.title),
            ]
        )
    return rows


def make_conflict_table(conflicts: List[BookingSummary]) -> List[List[str]]:
    rows = []
    for c in conflicts:
        on = [name for name, hit in (("vehicle", c.on_vehicle), ("driver", c.on_driver)) if hit]
        rows.append(
            [
                c.booking_id,
                format_datetime(c.start_time),
                format_datetime(c.end_time),
                " + ".join(on),
                c.status.value,
                truncate(c.title),
            ]
        )
    return rows


def parse_date_arg(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (expected YYYY-MM-DD)")


def parse_datetime_arg(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date/time '{value}' (expected YYYY-MM-DDTHH:MM)"
        )


def open_store(args) -> FleetStore:
    return FleetStore.open(args.file)


# =============================================================================
# Expirations command
# =============================================================================


def cmd_expirations(args):
    """Show overdue and upcoming obligations across the fleet."""
    store = open_store(args)
    report = store.fleet.expiration_report(
        today=args.today, include_broken_down=args.include_broken_down
    )

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return 0

    categories = list(Category)
    if args.category:
        categories = [Category(args.category)]

    print(f"Expirations as of {report.today.isoformat()}")
    print(f"Total: {report.total} ({report.total_overdue} overdue)")
    print()

    headers = ["Ref", "Due", "Remaining", "Tier", "Notes"]
    for category in categories:
        section = report[category]
        if not section.entries:
            continue
        print(f"{CATEGORY_TITLES[category]} ({len(section.entries)}):")
        print(
            tabulate(
                make_expiration_table(section.entries), headers=headers, tablefmt="simple"
            )
        )
        print()

    if report.total == 0:
        print("Nothing due.")

    return 0


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_inspection(args):
    """Show the next inspection due date for a vehicle."""
    store = open_store(args)
    vehicle = store.get_vehicle(args.vehicle)
    schedule = vehicle.next_inspection
    last = vehicle.last_inspection_date

    print(f"Vehicle:        {vehicle.name}")
    print(f"Body type:      {vehicle.body_type.value}")
    print(f"Registered:     {format_date(vehicle.registration_date)}")
    print(f"Last inspected: {format_date(last)}")
    print(f"Cadence:        {schedule.cadence_label}")
    print(f"Next due:       {format_date(schedule.next_due)}")
    return 0


def cmd_vehicles(args):
    """List vehicles."""
    store = open_store(args)
    where = VehicleFilter(
        status=VehicleStatus(args.status) if args.status else None,
        body_type=BodyType(args.body_type) if args.body_type else None,
        search=args.search,
    )
    vehicles = store.list_vehicles(where)
    if not vehicles:
        print("No vehicles found.")
        return 0

    rows = []
    for v in vehicles:
        rows.append(
            [
                v.plate,
                f"{v.make} {v.model}",
                v.body_type.value,
                v.acquisition_type.value,
                v.status.value,
                v.driver or "-",
                format_date(v.next_inspection.next_due),
            ]
        )
    headers = ["Plate", "Vehicle", "Body", "Acquired", "Status", "Driver", "Inspection"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_stats(args):
    """Show fleet statistics."""
    store = open_store(args)
    stats = store.fleet.statistics()

    print("Vehicles by status:")
    print(tabulate(sorted(stats.by_status.items()), headers=["Status", "Count"], tablefmt="simple"))
    print()
    print(f"Active vehicles:              {stats.active}")
    print(f"With restricted-zone permit:  {stats.with_restricted_zone_permit}")
    print(f"Road-tax exempt:              {stats.road_tax_exempt}")
    print(f"With waste authorizations:    {stats.with_waste_authorizations}")
    print(f"With assigned driver:         {stats.with_driver}")
    if stats.average_payload is not None:
        print(f"Average max payload:          {stats.average_payload:,.2f}")
    print()
    if stats.by_acquisition_type:
        print("Active by acquisition type:")
        rows = sorted(stats.by_acquisition_type.items())
        print(tabulate(rows, headers=["Type", "Count"], tablefmt="simple"))
        print()
    if stats.by_body_type:
        print("Active by body type:")
        rows = sorted(stats.by_body_type.items())
        print(tabulate(rows, headers=["Body", "Count"], tablefmt="simple"))
    return 0


# =============================================================================
# Booking commands
# =============================================================================


def cmd_bookings(args):
    """List service bookings."""
    store = open_store(args)
    vehicle_ref = store.get_vehicle(args.vehicle).id if args.vehicle else None
    where = BookingFilter(
        vehicle_ref=vehicle_ref,
        driver=args.driver,
        status=BookingStatus(args.status) if args.status else None,
        start_from=args.since,
        start_to=args.until,
    )
    bookings = store.list_bookings(where)
    if not bookings:
        print("No bookings found.")
        return 0
    headers = ["Id", "Start", "End", "Vehicle", "Driver", "Status", "Title"]
    print(tabulate(make_booking_table(bookings), headers=headers, tablefmt="simple"))
    return 0


def cmd_conflicts(args):
    """Check a time slot for vehicle/driver double-booking."""
    store = open_store(args)
    vehicle_ref = store.get_vehicle(args.vehicle).id if args.vehicle else None
    query = ConflictQuery(
        vehicle_ref=vehicle_ref,
        driver=args.driver,
        start_time=args.start,
        end_time=args.end,
        exclude_booking_id=args.exclude,
    )
    result = store.check_conflicts(query)

    if not result.has_conflicts:
        print("No conflicts.")
        return 0

    print(f"CONFLICTS ({len(result.conflicts)}):")
    headers = ["Id", "Start", "End", "Clash", "Status", "Title"]
    print(tabulate(make_conflict_table(result.conflicts), headers=headers, tablefmt="simple"))
    return 2


def cmd_book(args):
    """Create a service booking."""
    store = open_store(args)
    recurrence = None
    if args.recur:
        recurrence = RecurrenceRule(active=True, frequency=args.recur, end_date=args.recur_until)

    booking = ServiceBooking(
        title=args.title,
        vehicle_ref=args.vehicle,
        driver=args.driver,
        start_time=args.start,
        end_time=args.end,
        service_type=ServiceType(args.type),
        priority=Priority(args.priority),
        recurrence=recurrence,
        notes=args.notes,
    )

    if args.dry_run:
        vehicle = store.get_vehicle(args.vehicle)
        query = ConflictQuery(vehicle.id, args.driver or vehicle.driver, args.start, args.end)
        result = store.check_conflicts(query)
        print(f"Would book {vehicle.name} {format_datetime(args.start)} - {format_datetime(args.end)}")
        print(f"Conflicts: {len(result.conflicts)}")
        print("(dry run - no changes made)")
        return 0

    outcome = store.book_service(booking, actor=args.by, reject_conflicts=args.strict)
    print(f"Booked {outcome.booking.id}: {outcome.booking.title}")
    if outcome.conflicts.has_conflicts:
        print()
        print(f"WARNING: overlaps {len(outcome.conflicts.conflicts)} booking(s):")
        headers = ["Id", "Start", "End", "Clash", "Status", "Title"]
        print(
            tabulate(
                make_conflict_table(outcome.conflicts.conflicts),
                headers=headers,
                tablefmt="simple",
            )
        )
    return 0


def cmd_transition(args):
    """Change a booking's status."""
    store = open_store(args)
    booking = store.transition_booking(args.booking_id, BookingStatus(args.status), actor=args.by)
    print(f"Booking {booking.id} is now {booking.status.value}")
    return 0


def cmd_recur(args):
    """Generate the next occurrences of a recurring booking."""
    store = open_store(args)
    outcomes = store.generate_recurring(
        args.booking_id, count=args.count, actor=args.by, save=args.save
    )
    if not outcomes:
        print("No occurrences generated (recurrence inactive or past its end date).")
        return 0

    rows = []
    for outcome in outcomes:
        b = outcome.booking
        rows.append(
            [
                format_datetime(b.start_time),
                format_datetime(b.end_time),
                len(outcome.conflicts.conflicts) or "-",
            ]
        )
    print(tabulate(rows, headers=["Start", "End", "Conflicts"], tablefmt="simple"))
    print()
    if args.save:
        print(f"Saved {len(outcomes)} booking(s).")
    else:
        print("(preview - use --save to store)")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet compliance and service booking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s expirations
  %(prog)s -f fleet.yaml expirations --category roadTax
  %(prog)s expirations --today 2025-06-01 --include-broken-down
  %(prog)s inspection AB123CD
  %(prog)s conflicts --vehicle AB123CD --start 2025-11-01T08:00 --end 2025-11-01T17:00
  %(prog)s book --title "Skip collection" --vehicle AB123CD \\
      --start 2025-11-03T08:00 --end 2025-11-03T12:00 --recur weekly
  %(prog)s recur <booking-id> --count 4 --save
""",
    )
    parser.add_argument(
        "-f",
        "--file",
        type=Path,
        default=fleet_file_from_env(),
        help="Path to fleet YAML file (default: $FLEETCARE_FILE or fleet.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Expirations subcommand
    exp_parser = subparsers.add_parser(
        "expirations", help="Show overdue and upcoming obligations"
    )
    exp_parser.add_argument(
        "--today", type=parse_date_arg, help="Reference date (default: today)"
    )
    exp_parser.add_argument(
        "--include-broken-down",
        action="store_true",
        help="Also scan broken-down vehicles",
    )
    exp_parser.add_argument(
        "--category",
        choices=[c.value for c in Category],
        help="Show a single category",
    )
    exp_parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    # Inspection subcommand
    insp_parser = subparsers.add_parser("inspection", help="Show next inspection due date")
    insp_parser.add_argument("vehicle", help="Vehicle id or plate")

    # Vehicles subcommand
    veh_parser = subparsers.add_parser("vehicles", help="List vehicles")
    veh_parser.add_argument("--status", choices=[s.value for s in VehicleStatus])
    veh_parser.add_argument("--body-type", choices=[b.value for b in BodyType])
    veh_parser.add_argument("--search", help="Text to find in plate, make or model")

    # Stats subcommand
    subparsers.add_parser("stats", help="Show fleet statistics")

    # Bookings subcommand
    bk_parser = subparsers.add_parser("bookings", help="List service bookings")
    bk_parser.add_argument("--vehicle", help="Vehicle id or plate")
    bk_parser.add_argument("--driver", help="Driver name (substring, case-insensitive)")
    bk_parser.add_argument("--status", choices=[s.value for s in BookingStatus])
    bk_parser.add_argument("--since", type=parse_datetime_arg, help="Earliest start")
    bk_parser.add_argument("--until", type=parse_datetime_arg, help="Latest start")

    # Conflicts subcommand
    cf_parser = subparsers.add_parser("conflicts", help="Check a slot for double-booking")
    cf_parser.add_argument("--vehicle", help="Vehicle id or plate")
    cf_parser.add_argument("--driver", help="Driver name")
    cf_parser.add_argument("--start", type=parse_datetime_arg, required=True)
    cf_parser.add_argument("--end", type=parse_datetime_arg, required=True)
    cf_parser.add_argument("--exclude", help="Booking id to ignore (when rescheduling)")

    # Book subcommand
    book_parser = subparsers.add_parser("book", help="Create a service booking")
    book_parser.add_argument("--title", required=True)
    book_parser.add_argument("--vehicle", required=True, help="Vehicle id or plate")
    book_parser.add_argument("--driver", help="Driver (default: the vehicle's driver)")
    book_parser.add_argument("--start", type=parse_datetime_arg, required=True)
    book_parser.add_argument("--end", type=parse_datetime_arg, required=True)
    book_parser.add_argument(
        "--type", choices=[t.value for t in ServiceType], default=ServiceType.OTHER.value
    )
    book_parser.add_argument(
        "--priority", choices=[p.value for p in Priority], default=Priority.MEDIUM.value
    )
    book_parser.add_argument("--recur", choices=[f.value for f in Frequency])
    book_parser.add_argument("--recur-until", type=parse_date_arg)
    book_parser.add_argument("--notes")
    book_parser.add_argument("--by", help="Who is making the booking")
    book_parser.add_argument(
        "--strict", action="store_true", help="Refuse to book over a conflict"
    )
    book_parser.add_argument(
        "--dry-run", action="store_true", help="Check without saving"
    )

    # Transition subcommand
    tr_parser = subparsers.add_parser("transition", help="Change a booking's status")
    tr_parser.add_argument("booking_id")
    tr_parser.add_argument("status", choices=[s.value for s in BookingStatus])
    tr_parser.add_argument("--by", help="Who is making the change")

    # Recur subcommand
    recur_parser = subparsers.add_parser(
        "recur", help="Generate occurrences of a recurring booking"
    )
    recur_parser.add_argument("booking_id")
    recur_parser.add_argument("--count", type=int, default=10)
    recur_parser.add_argument("--save", action="store_true", help="Store the occurrences")
    recur_parser.add_argument("--by", help="Who is generating the bookings")

    return parser


COMMANDS = {
    "expirations": cmd_expirations,
    "inspection": cmd_inspection,
    "vehicles": cmd_vehicles,
    "stats": cmd_stats,
    "bookings": cmd_bookings,
    "conflicts": cmd_conflicts,
    "book": cmd_book,
    "transition": cmd_transition,
    "recur": cmd_recur,
}


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.file.exists():
        print(f"Error: File not found: {args.file}")
        return 1

    try:
        return COMMANDS[args.command](args)
    except FleetError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
