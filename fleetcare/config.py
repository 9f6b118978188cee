"""Configuration: default fleet file and expiration windows."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_FLEET_FILE = "fleet.yaml"

# camelCase keys accepted under `settings: windows:` in a fleet file
_WINDOW_KEYS = {
    "inspectionAnnualDays": "inspection_annual_days",
    "inspectionStandardDays": "inspection_standard_days",
    "roadTaxDays": "road_tax_days",
    "insuranceDays": "insurance_days",
    "insuranceLowToleranceDays": "insurance_low_tolerance_days",
    "permitDays": "permit_days",
    "permitCriticalDays": "permit_critical_days",
    "permitUrgentDays": "permit_urgent_days",
    "propertyTitleDays": "property_title_days",
    "propertyTitleUrgentDays": "property_title_urgent_days",
    "registrationDays": "registration_days",
    "registrationThreeMonthDays": "registration_three_month_days",
    "driverDocumentDays": "driver_document_days",
}


def fleet_file_from_env() -> Path:
    """Fleet file named by FLEETCARE_FILE, or fleet.yaml in the working directory."""
    return Path(os.environ.get("FLEETCARE_FILE", DEFAULT_FLEET_FILE))


@dataclass(frozen=True)
class ExpirationWindows:
    """Inclusion windows and tier thresholds, in days."""

    inspection_annual_days: int = 60
    inspection_standard_days: int = 365
    road_tax_days: int = 30
    insurance_days: int = 30
    insurance_low_tolerance_days: int = 15
    permit_days: int = 60
    permit_critical_days: int = 7
    permit_urgent_days: int = 30
    property_title_days: int = 180
    property_title_urgent_days: int = 90
    registration_days: int = 180
    registration_three_month_days: int = 90
    driver_document_days: int = 30

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ExpirationWindows":
        """Build from a camelCase mapping; unknown keys are ignored."""
        if not data:
            return cls()
        kwargs = {}
        for key, value in data.items():
            attr = _WINDOW_KEYS.get(key)
            if attr is not None:
                kwargs[attr] = int(value)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, int]:
        """Serialize only values that differ from the defaults."""
        reverse = {v: k for k, v in _WINDOW_KEYS.items()}
        default = ExpirationWindows()
        d = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value != getattr(default, f.name):
                d[reverse[f.name]] = value
        return d
