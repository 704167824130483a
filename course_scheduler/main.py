"""FastAPI application: entry point for the lecturer scheduling service."""

from __future__ import annotations

from datetime import date

from fastapi import FastAPI, HTTPException, Query

from course_scheduler.config import Settings, configure_logging
from course_scheduler.domain.booking import BookingValidator, ScheduleBooker
from course_scheduler.domain.bus import EventBus
from course_scheduler.domain.handlers import HandlerRegistry
from course_scheduler.domain.models import (
    ActivityEntry,
    AvailabilityRequest,
    AvailabilityResponse,
    BookingDraft,
    BookingView,
    ClassOption,
    LecturerOption,
    LecturerStatus,
    OpenBookingRequest,
    Schedule,
    ScheduleCreate,
    ScheduleSummary,
    UpcomingSchedule,
)
from course_scheduler.errors import ConflictError, SchedulingError
from course_scheduler.repos.memory import (
    ActivityRepository,
    BookingRepository,
    ClassRepository,
    LecturerRepository,
    ScheduleRepository,
    seed,
)
from course_scheduler.services.availability import AvailabilityChecker
from course_scheduler.services.options import active_class_options, lecturer_options
from course_scheduler.services.summary import schedule_summary, upcoming_schedules

settings = Settings.from_env()
configure_logging(settings.log_level)

app = FastAPI(title="Lecturer Scheduling Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
lecturer_repo = LecturerRepository()
class_repo = ClassRepository()
schedule_repo = ScheduleRepository(lecturer_repo=lecturer_repo, class_repo=class_repo)
activity_repo = ActivityRepository()
booking_repo = BookingRepository()

checker = AvailabilityChecker(schedule_repo)
booker = ScheduleBooker(checker, schedule_repo, event_bus, fail_open=settings.fail_open)

handler_registry = HandlerRegistry(
    bus=event_bus,
    lecturer_repo=lecturer_repo,
    class_repo=class_repo,
    schedule_repo=schedule_repo,
    activity_repo=activity_repo,
)

if settings.seed:
    seed(lecturer_repo, class_repo)


def _http_error(exc: SchedulingError) -> HTTPException:
    detail: dict = {"type": type(exc).__name__, "message": exc.message, "field": exc.field}
    if isinstance(exc, ConflictError):
        detail["conflicting_schedule_ids"] = exc.conflicting_schedule_ids
    return HTTPException(status_code=exc.status_code, detail=detail)


def _get_booking(booking_id: str) -> BookingValidator:
    booking = booking_repo.get(booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


# ── Routes: option lists ──────────────────────────────────────────────


@app.get("/lecturers", response_model=list[LecturerOption])
def list_lecturers(
    status: LecturerStatus = LecturerStatus.ACTIVE,
    search: str | None = None,
) -> list[LecturerOption]:
    """Lecturers with the given status, ordered by name, optionally searched."""
    return lecturer_options(lecturer_repo, status=status, search=search)


@app.get("/classes", response_model=list[ClassOption])
def list_classes() -> list[ClassOption]:
    """Active classes that can be booked, ordered by name."""
    return active_class_options(class_repo)


# ── Routes: availability and schedules ────────────────────────────────


@app.post("/availability", response_model=AvailabilityResponse)
def check_availability(body: AvailabilityRequest) -> AvailabilityResponse:
    """Tell whether the lecturer is free for the window.

    ``status`` is ``unknown`` when the lookup itself failed.
    """
    if lecturer_repo.get(body.lecturer_id) is None:
        raise HTTPException(status_code=404, detail="Lecturer not found")
    result = checker.check(
        body.lecturer_id,
        body.scheduled_date,
        body.start_time,
        body.end_time,
        exclude_schedule_id=body.exclude_schedule_id,
    )
    return AvailabilityResponse(
        available=result.available,
        status=result.status,
        conflicting_schedule_ids=result.conflicting_schedule_ids,
    )


@app.post("/schedules", response_model=Schedule, status_code=201)
def create_schedule(body: ScheduleCreate) -> Schedule:
    """Validate and persist a schedule in one call."""
    try:
        return booker.book(body)
    except SchedulingError as exc:
        raise _http_error(exc) from exc


@app.get("/schedules/upcoming", response_model=list[UpcomingSchedule])
def list_upcoming_schedules(
    from_date: date | None = None,
    limit: int | None = Query(default=None, gt=0),
) -> list[UpcomingSchedule]:
    """Scheduled classes from *from_date* (default today) on, by date then start time."""
    return upcoming_schedules(
        schedule_repo,
        lecturer_repo,
        class_repo,
        from_date=from_date or date.today(),
        limit=limit or settings.upcoming_limit,
    )


@app.get("/schedules/summary", response_model=ScheduleSummary)
def get_schedule_summary(today: date | None = None) -> ScheduleSummary:
    return schedule_summary(schedule_repo, lecturer_repo, today or date.today())


@app.get("/activity", response_model=list[ActivityEntry])
def list_activity(limit: int = Query(default=10, gt=0)) -> list[ActivityEntry]:
    """Most recent booking activity first."""
    return activity_repo.list_recent(limit)


# ── Routes: booking sessions ──────────────────────────────────────────


@app.post("/bookings", response_model=BookingView, status_code=201)
def open_booking(body: OpenBookingRequest) -> BookingView:
    """Start a booking form for a lecturer."""
    if lecturer_repo.get(body.lecturer_id) is None:
        raise HTTPException(status_code=404, detail="Lecturer not found")
    booking = BookingValidator(body.lecturer_id, checker, booker, event_bus, settings=settings)
    booking_repo.add(booking)
    return booking.view()


@app.get("/bookings/{booking_id}", response_model=BookingView)
def get_booking(booking_id: str) -> BookingView:
    return _get_booking(booking_id).view()


@app.patch("/bookings/{booking_id}", response_model=BookingView)
async def edit_booking(booking_id: str, body: BookingDraft) -> BookingView:
    """Apply field changes and, when the window is complete, run the live check.

    The check waits out the debounce period; a newer edit arriving meanwhile
    supersedes it.
    """
    booking = _get_booking(booking_id)
    try:
        token = booking.edit(**body.model_dump(exclude_unset=True))
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    if token is not None:
        await booking.live_check(token)
    return booking.view()


@app.post("/bookings/{booking_id}/submit", response_model=BookingView)
def submit_booking(booking_id: str) -> BookingView:
    """Final validation and availability check, then persist."""
    booking = _get_booking(booking_id)
    try:
        booking.submit()
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    booking_repo.remove(booking_id)
    return booking.view()


@app.post("/bookings/{booking_id}/cancel", response_model=BookingView)
def cancel_booking(booking_id: str) -> BookingView:
    booking = _get_booking(booking_id)
    try:
        booking.cancel()
    except SchedulingError as exc:
        raise _http_error(exc) from exc
    booking_repo.remove(booking_id)
    return booking.view()
