"""Draft generation for recurring bookings."""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

from dateutil.relativedelta import relativedelta

from .booking import BookingStatus, Frequency, RecurrenceRule, ServiceBooking
from .errors import ValidationError
from .validation import parse_frequency

logger = logging.getLogger(__name__)

DEFAULT_OCCURRENCES = 10

STEPS = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(days=7),
    Frequency.MONTHLY: relativedelta(months=1),
}


def advance(cursor: datetime, frequency: Frequency) -> datetime:
    """
    Move `cursor` one step forward.

    A monthly step keeps the day of month and lets it overflow into the
    following month when the target month is shorter: 31 Jan steps to
    3 Mar (2 Mar in a leap year), and the next step goes from there.
    """
    stepped = cursor + STEPS[frequency]
    if frequency is Frequency.MONTHLY and stepped.day < cursor.day:
        stepped += timedelta(days=cursor.day - stepped.day)
    return stepped


def past_end(cursor: datetime, end: Optional[Union[date, datetime]]) -> bool:
    """True if `cursor` lies beyond the rule's end. A plain date means its midnight."""
    if end is None:
        return False
    if not isinstance(end, datetime):
        end = datetime.combine(end, time.min)
    return cursor > end

def draft_from(template: ServiceBooking, start: datetime, actor: Optional[str] = None) -> ServiceBooking:
    """Copy the template's business fields into a new scheduled booking at `start`."""
    rule = template.recurrence
    return ServiceBooking(
        title=template.title,
        vehicle_ref=template.vehicle_ref,
        driver=template.driver,
        start_time=start,
        end_time=start + template.duration,
        service_type=template.service_type,
        status=BookingStatus.SCHEDULED,
        priority=template.priority,
        recurrence=RecurrenceRule(rule.active, rule.frequency, rule.end_date) if rule else None,
        description=template.description,
        notes=template.notes,
        created_by=actor,
    )


def generate_recurring_bookings(
    template: ServiceBooking,
    count: int = DEFAULT_OCCURRENCES,
    actor: Optional[str] = None,
) -> List[ServiceBooking]:
    """
    Produce up to `count` drafts following the template's recurrence rule.

    The cursor starts at the template's start and advances one step per
    occurrence; generation stops early once the cursor passes the rule's end
    date. An inactive (or missing) rule yields no drafts. Drafts are not
    persisted or conflict-checked here.
    """
    if count < 1:
        raise ValidationError("Occurrence count must be at least 1", field="count")
    rule = template.recurrence
    if rule is None:
        return []
    frequency = parse_frequency(rule)
    if frequency is None:
        return []

    cursor = template.start_time
    drafts = []
    for _ in range(count):
        cursor = advance(cursor, frequency)
        if past_end(cursor, rule.end_date):
            break
        drafts.append(draft_from(template, cursor, actor))

    logger.debug(
        "Generated %d %s draft(s) from booking %s", len(drafts), frequency.value, template.id
    )
    return drafts
