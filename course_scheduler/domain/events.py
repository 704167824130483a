"""Domain events emitted during the booking flow."""

from __future__ import annotations

from pydantic import BaseModel


class ScheduleCreated(BaseModel):
    """Fired when a booking is committed and the Schedule persisted."""

    schedule_id: str
    lecturer_id: str
    class_id: str


class BookingRejected(BaseModel):
    """Fired when a submit attempt is refused by validation, the guard or the store."""

    booking_id: str | None = None
    lecturer_id: str
    reason: str
    error_type: str
