"""Driver class - a driver and the personal documents that expire."""

import uuid
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional


class DocumentType(Enum):
    LICENCE = "licence"
    QUALIFICATION = "qualification"


class DriverDocument:
    """A driving licence or professional qualification (ADR, CQC, forklift, ...)."""

    def __init__(
            self,
            document_type: DocumentType,
            kind: str,
            expiration_date: Optional[date] = None,
            number: Optional[str] = None,
            valid: bool = True,
    ):
        self.document_type = document_type
        self.kind = kind
        self.expiration_date = expiration_date
        self.number = number
        self.valid = valid

    @property
    def tracked(self) -> bool:
        """Withdrawn documents and those without an expiration are not tracked."""
        return self.valid and self.expiration_date is not None


class Driver:
    """A driver. Bookings refer to drivers by name."""

    def __init__(
            self,
            name: str,
            licences: Optional[Iterable[DriverDocument]] = None,
            qualifications: Optional[Iterable[DriverDocument]] = None,
            active: bool = True,
            phone: Optional[str] = None,
            driver_id: Optional[str] = None,
    ):
        self.id = driver_id or uuid.uuid4().hex
        self.name = name.strip()
        self.licences = list(licences or [])
        self.qualifications = list(qualifications or [])
        self.active = active
        self.phone = phone

    @property
    def documents(self) -> List[DriverDocument]:
        return self.licences + self.qualifications
