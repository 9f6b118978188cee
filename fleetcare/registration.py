"""Regulatory registrations: waste-operator registry and road-haulier registry."""

import uuid
from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import Dict, Optional

from .attachment import Attachment, AttachmentOwner

WASTE_CATEGORIES = ("1", "4", "5", "8", "9", "10")
WASTE_CLASSES = ("A", "B", "C", "D", "E", "F")


class RegistrationKind(Enum):
    WASTE_OPERATOR = "waste-operator"
    ROAD_HAULIER = "road-haulier"


class ActivityType(Enum):
    OWN_ACCOUNT = "own-account"
    THIRD_PARTY = "third-party"


class Registration(AttachmentOwner, ABC):
    """Fields shared by both registries. Vehicles refer to these by id only."""

    kind: RegistrationKind

    def __init__(
            self,
            registration_number: str,
            issue_date: date,
            expiration_date: date,
            attachments: Optional[Dict[str, Attachment]] = None,
            updated_by: Optional[str] = None,
            registration_id: Optional[str] = None,
    ):
        self.id = registration_id or uuid.uuid4().hex
        self.registration_number = registration_number.strip()
        self.issue_date = issue_date
        self.expiration_date = expiration_date
        self.attachments = dict(attachments or {})
        self.updated_by = updated_by

    @property
    @abstractmethod
    def classification(self) -> str:
        """Registry-specific summary shown in listings."""


class WasteOperatorRegistration(Registration):
    """Enrollment in the national waste-operator registry."""

    kind = RegistrationKind.WASTE_OPERATOR

    def __init__(self, registration_number: str, issue_date: date, expiration_date: date,
                 category: str, register_class: str, **kwargs):
        super().__init__(registration_number, issue_date, expiration_date, **kwargs)
        self.category = str(category)
        self.register_class = register_class

    @property
    def classification(self) -> str:
        return f"Category {self.category} - Class {self.register_class}"


class HaulierRegistration(Registration):
    """Enrollment in the road-haulier registry."""

    kind = RegistrationKind.ROAD_HAULIER

    def __init__(self, registration_number: str, issue_date: date, expiration_date: date,
                 region: str, province: str, activity_type: ActivityType,
                 third_party_number: Optional[str] = None, **kwargs):
        super().__init__(registration_number, issue_date, expiration_date, **kwargs)
        self.region = region
        self.province = province
        self.activity_type = activity_type
        self.third_party_number = third_party_number

    @property
    def classification(self) -> str:
        return f"{self.region} ({self.province}) - {self.activity_type.value}"
