"""Domain models for the lecturer scheduling service."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from enum import Enum

from pydantic import BaseModel, Field, model_validator

try:
    from enum import StrEnum
except ImportError:  # pragma: no cover - fallback for older Python runtimes

    class StrEnum(str, Enum):
        pass


class LecturerStatus(StrEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ON_LEAVE = "On Leave"


class ClassStatus(StrEnum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    INACTIVE = "Inactive"


class ScheduleStatus(StrEnum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class AvailabilityStatus(StrEnum):
    AVAILABLE = "available"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


class BookingState(StrEnum):
    EDITING = "editing"
    CHECKING = "checking"
    VALID = "valid"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"
    SUBMITTING = "submitting"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Lecturer(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    email: str
    phone: str | None = None
    subjects: list[str] = Field(default_factory=list)
    status: LecturerStatus = LecturerStatus.ACTIVE
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ClassSession(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    course_id: str | None = None
    class_center_name: str | None = None
    district: str | None = None
    status: ClassStatus = ClassStatus.ACTIVE
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Schedule(BaseModel):
    id: str = Field(default_factory=_new_id, frozen=True)
    class_id: str
    lecturer_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    location: str | None = None
    notes: str | None = None
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Schedule:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ActivityEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_utcnow)
    type: str
    message: str
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class LecturerOption(BaseModel):
    id: str
    name: str
    email: str
    subjects: list[str] = Field(default_factory=list)


class ClassOption(BaseModel):
    id: str
    name: str


class AvailabilityRequest(BaseModel):
    lecturer_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    exclude_schedule_id: str | None = None


class AvailabilityResult(BaseModel):
    status: AvailabilityStatus
    conflicting_schedule_ids: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.status == AvailabilityStatus.AVAILABLE


class AvailabilityResponse(BaseModel):
    available: bool
    status: AvailabilityStatus
    conflicting_schedule_ids: list[str] = Field(default_factory=list)


class ScheduleCreate(BaseModel):
    """Fields a user may supply when booking; ids and timestamps are not among them."""

    class_id: str
    lecturer_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    location: str | None = None
    notes: str | None = None


class UpcomingSchedule(BaseModel):
    id: str
    class_id: str
    class_name: str | None = None
    lecturer_id: str
    lecturer_name: str | None = None
    lecturer_email: str | None = None
    scheduled_date: date
    start_time: time
    end_time: time
    location: str | None = None
    notes: str | None = None
    status: ScheduleStatus


class ScheduleSummary(BaseModel):
    available_lecturers: int
    upcoming_schedules: int
    todays_schedules: int
    total_subjects: int


class BookingDraft(BaseModel):
    """Form fields of a booking in progress. Everything is optional until submit."""

    class_id: str | None = None
    scheduled_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = None
    notes: str | None = None


class OpenBookingRequest(BaseModel):
    lecturer_id: str


class BookingView(BaseModel):
    id: str
    lecturer_id: str
    state: BookingState
    token: int
    draft: BookingDraft
    message: str | None = None
    error: str | None = None
    schedule_id: str | None = None
