"""Error taxonomy for fleet operations."""

from typing import List, Optional


class FleetError(Exception):
    """Base class for all errors raised by fleetcare."""


class ValidationError(FleetError):
    """Rejected input. Carries the first offending field and every problem found."""

    def __init__(self, message: str, field: Optional[str] = None, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.field = field
        self.problems = problems or [message]


class InvalidTransitionError(ValidationError):
    """A booking status change that the state machine does not allow."""

    def __init__(self, current, requested):
        super().__init__(
            f"Cannot move booking from '{current.value}' to '{requested.value}'",
            field="status",
        )
        self.current = current
        self.requested = requested


class NotFoundError(FleetError):
    """An operation referenced a record that does not exist."""

    def __init__(self, kind: str, ref: str):
        super().__init__(f"{kind} not found: {ref}")
        self.kind = kind
        self.ref = ref


class ConflictError(FleetError):
    """A booking overlaps existing bookings for the same vehicle or driver."""

    def __init__(self, conflicts):
        ids = ", ".join(c.booking_id for c in conflicts)
        super().__init__(f"Booking conflicts with: {ids}")
        self.conflicts = conflicts
