"""Helper functions for due-date calculations."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence, Tuple, Union

from dateutil.relativedelta import relativedelta

from .body_type import BodyType
from .tier import Tier

DateLike = Union[date, datetime]

ANNUAL = "annual"
BIENNIAL = "biennial"


@dataclass(frozen=True)
class InspectionCadence:
    """Years until the first inspection and between later ones."""

    first_years: int
    subsequent_years: int
    label: str


ANNUAL_INSPECTION = InspectionCadence(first_years=1, subsequent_years=1, label=ANNUAL)
STANDARD_INSPECTION = InspectionCadence(first_years=4, subsequent_years=2, label=BIENNIAL)


@dataclass(frozen=True)
class InspectionSchedule:
    """Next inspection due date and the cadence that produced it."""

    next_due: date
    cadence_label: str

    @property
    def is_annual(self) -> bool:
        return self.cadence_label == ANNUAL


def inspection_cadence(body_type: BodyType) -> InspectionCadence:
    """Cadence class for a body type."""
    if body_type.is_annual_cadence:
        return ANNUAL_INSPECTION
    return STANDARD_INSPECTION


def calc_next_inspection(
    body_type: BodyType,
    registration_date: date,
    last_inspection_date: Optional[date] = None,
) -> InspectionSchedule:
    """
    Calculate the next technical inspection due date.

    - With a previous inspection: last inspection + subsequent interval
    - Without: registration date + first interval
    """
    cadence = inspection_cadence(body_type)
    if last_inspection_date is not None:
        next_due = last_inspection_date + relativedelta(years=cadence.subsequent_years)
    else:
        next_due = registration_date + relativedelta(years=cadence.first_years)
    return InspectionSchedule(next_due=next_due, cadence_label=cadence.label)


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def days_remaining(due: DateLike, today: DateLike) -> int:
    """
    Whole days from `today` until `due`, floored.

    Plain dates count from midnight, so a due date earlier in the day than
    `today` never gains a day.
    """
    delta = _as_datetime(due) - _as_datetime(today)
    return math.floor(delta.total_seconds() / 86400)


def is_overdue(days: int) -> bool:
    """Zero days remaining counts as overdue."""
    return days <= 0


def check_tier(days: int, thresholds: Sequence[Tuple[int, Tier]]) -> Tier:
    """
    Tier for a number of remaining days.

    `thresholds` is (upper_bound_days, tier) in ascending order; the last
    entry's tier applies beyond every bound. Zero or fewer days is OVERDUE.
    """
    if is_overdue(days):
        return Tier.OVERDUE
    for bound, tier in thresholds:
        if days <= bound:
            return tier
    return thresholds[-1][1]
