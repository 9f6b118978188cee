"""Attachment records owned by vehicles and bookings."""

import uuid
from datetime import datetime
from typing import Dict, Optional

from .errors import NotFoundError


class Attachment:
    """Metadata for a stored file. `reference` is the storage service's handle."""

    def __init__(
            self,
            file_name: str,
            reference: str,
            kind: str = "other",
            uploaded_at: Optional[datetime] = None,
            attachment_id: Optional[str] = None,
    ):
        self.id = attachment_id or uuid.uuid4().hex
        self.file_name = file_name
        self.reference = reference
        self.kind = kind
        self.uploaded_at = uploaded_at or datetime.now()


class AttachmentOwner:
    """Mixin for records that own a collection of attachments keyed by id."""

    attachments: Dict[str, Attachment]

    def add_attachment(self, attachment: Attachment) -> Attachment:
        self.attachments[attachment.id] = attachment
        return attachment

    def remove_attachment(self, attachment_id: str) -> Attachment:
        """Detach by id and return the removed record so its file can be deleted."""
        try:
            return self.attachments.pop(attachment_id)
        except KeyError:
            raise NotFoundError("Attachment", attachment_id) from None
