"""Tier enum for expiration urgency levels."""

from enum import Enum


class Tier(Enum):
    """Expiration urgency tiers. Lower value = more urgent."""

    OVERDUE = 1
    CRITICAL = 2  # Restricted-zone permit, <= 7 days
    URGENT = 3
    WARNING = 4
    DUE = 5
    WITHIN_THREE_MONTHS = 6  # Registrations, <= 90 days
    WITHIN_SIX_MONTHS = 7  # Registrations, <= 180 days

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")
