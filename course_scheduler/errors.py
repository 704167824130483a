"""Error taxonomy for the scheduling flow.

Each error carries the HTTP status the routes answer with, so the API layer
can translate them without a lookup table of its own.
"""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for errors recovered at the booking boundary."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(SchedulingError):
    """Local input problem (missing field, end not after start). No I/O was attempted."""

    status_code = 422


class ConflictError(SchedulingError):
    """The lecturer already has a schedule overlapping the requested slot."""

    status_code = 409

    def __init__(
        self,
        message: str,
        field: str | None = "start_time",
        conflicting_schedule_ids: list[str] | None = None,
    ) -> None:
        super().__init__(message, field)
        self.conflicting_schedule_ids = conflicting_schedule_ids or []


class LookupFailure(SchedulingError):
    """Availability could not be determined because the store read failed."""

    status_code = 503


class PersistenceFailure(SchedulingError):
    """Creating the schedule failed after validation passed. Safe to retry."""

    status_code = 503


class NotFoundError(SchedulingError):
    status_code = 404
