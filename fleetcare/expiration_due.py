"""ExpirationDue dataclass for a single upcoming or missed obligation."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict

from .tier import Tier


class Category(Enum):
    """Obligation categories, valued by their key in a serialized report."""

    INSPECTION = "inspections"
    ROAD_TAX = "roadTax"
    INSURANCE = "insurance"
    RESTRICTED_ZONE_PERMIT = "restrictedZonePermits"
    PROPERTY_TITLE = "propertyTitles"
    WASTE_REGISTRATION = "wasteRegistrations"
    HAULIER_REGISTRATION = "haulierRegistrations"
    DRIVER_DOCUMENT = "driverDocuments"


@dataclass
class ExpirationDue:
    """Calculated expiration information for one entity in one category."""

    category: Category
    entity_ref: str
    label: str
    due_date: date
    days_remaining: int
    tier: Tier
    low_tolerance: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_overdue(self) -> bool:
        return self.tier is Tier.OVERDUE

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "entityRef": self.entity_ref,
            "label": self.label,
            "dueDate": self.due_date.isoformat(),
            "daysRemaining": self.days_remaining,
            "isOverdue": self.is_overdue,
            "tier": self.tier.label,
        }
        if self.category is Category.INSURANCE:
            d["lowTolerance"] = self.low_tolerance
        d.update(self.details)
        return d
