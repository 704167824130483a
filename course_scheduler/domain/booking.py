"""Booking flow: from form input to a persisted Schedule or a rejection.

``ScheduleBooker`` is the authoritative path into the schedule store. It is
used directly by the one-shot create route and by ``BookingValidator``, the
per-form state machine that also runs the advisory live availability check.

Live checks are tagged with an attempt token. Any change to the date or the
times bumps the token, and a result that comes back for an older token is
dropped instead of being applied.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from datetime import time

from pydantic import ValidationError as PydanticValidationError

from course_scheduler.config import Settings
from course_scheduler.domain.bus import EventBus
from course_scheduler.domain.events import BookingRejected, ScheduleCreated
from course_scheduler.domain.models import (
    AvailabilityResult,
    AvailabilityStatus,
    BookingDraft,
    BookingState,
    BookingView,
    Schedule,
    ScheduleCreate,
)
from course_scheduler.errors import (
    ConflictError,
    LookupFailure,
    PersistenceFailure,
    SchedulingError,
    ValidationError,
)
from course_scheduler.repos.memory import ScheduleRepository
from course_scheduler.services.availability import AvailabilityChecker

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = (
    "Lecturer is not available at this time. Please choose a different time slot."
)
INVALID_WINDOW_MESSAGE = "End time must be after start time."
UNKNOWN_MESSAGE = "Could not verify lecturer availability. Please try again."
PERSISTENCE_MESSAGE = "Failed to schedule class. Please try again."

_TIMING_FIELDS = ("scheduled_date", "start_time", "end_time")
_REQUIRED_FIELDS = ("class_id", "scheduled_date", "start_time", "end_time")
_TERMINAL_STATES = (BookingState.COMMITTED, BookingState.CANCELLED)


def validate_window(start_time: time | None, end_time: time | None) -> None:
    """Raise ``ValidationError`` unless the end time is strictly after the start."""
    if start_time is None or end_time is None:
        return
    if end_time <= start_time:
        raise ValidationError(INVALID_WINDOW_MESSAGE, field="end_time")


class ScheduleBooker:
    """Validates and persists one schedule request.

    Order matters: the local window check runs before any lookup, the
    availability check runs before the insert, and the store re-checks overlap
    while inserting.
    """

    def __init__(
        self,
        checker: AvailabilityChecker,
        schedule_repo: ScheduleRepository,
        bus: EventBus,
        fail_open: bool = False,
    ) -> None:
        self.checker = checker
        self.schedule_repo = schedule_repo
        self.bus = bus
        self.fail_open = fail_open

    def book(self, request: ScheduleCreate) -> Schedule:
        validate_window(request.start_time, request.end_time)

        result = self.checker.check(
            request.lecturer_id,
            request.scheduled_date,
            request.start_time,
            request.end_time,
        )
        if result.status == AvailabilityStatus.CONFLICT:
            raise ConflictError(
                CONFLICT_MESSAGE,
                conflicting_schedule_ids=result.conflicting_schedule_ids,
            )
        if result.status == AvailabilityStatus.UNKNOWN:
            if not self.fail_open:
                raise LookupFailure(UNKNOWN_MESSAGE)
            logger.warning(
                "Availability unknown for lecturer %s on %s, booking anyway (fail-open)",
                request.lecturer_id,
                request.scheduled_date,
            )

        schedule = Schedule(**request.model_dump())
        try:
            stored = self.schedule_repo.add_if_free(schedule)
        except SchedulingError:
            raise
        except Exception as exc:
            logger.error("Failed to persist schedule for lecturer %s: %s", request.lecturer_id, exc)
            raise PersistenceFailure(PERSISTENCE_MESSAGE) from exc

        logger.info(
            "Scheduled class %s with lecturer %s on %s %s-%s",
            stored.class_id,
            stored.lecturer_id,
            stored.scheduled_date,
            stored.start_time,
            stored.end_time,
        )
        # The schedule is committed; a failing subscriber must not turn that into an error.
        try:
            self.bus.publish(
                ScheduleCreated(
                    schedule_id=stored.id,
                    lecturer_id=stored.lecturer_id,
                    class_id=stored.class_id,
                )
            )
        except Exception:
            logger.exception("ScheduleCreated handler failed for schedule %s", stored.id)
        return stored


class BookingValidator:
    """State machine for a single booking attempt for a fixed lecturer."""

    def __init__(
        self,
        lecturer_id: str,
        checker: AvailabilityChecker,
        booker: ScheduleBooker,
        bus: EventBus,
        settings: Settings | None = None,
        booking_id: str | None = None,
    ) -> None:
        self.id = booking_id or str(uuid.uuid4())
        self.lecturer_id = lecturer_id
        self.checker = checker
        self.booker = booker
        self.bus = bus
        self.settings = settings or Settings()
        self.state = BookingState.EDITING
        self.token = 0
        self.draft = BookingDraft()
        self.message: str | None = None
        self.error: str | None = None
        self.schedule: Schedule | None = None
        # Guards state transitions; never held across the availability lookup or the insert.
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def edit(self, **fields) -> int | None:
        """Apply field changes.

        Returns the token to run a live check with, or ``None`` when no check
        is due (incomplete or reversed window, or only non-timing fields
        changed).
        """
        with self._lock:
            return self._apply_edit(fields)

    def _apply_edit(self, fields: dict) -> int | None:
        self._ensure_editable()

        unknown = set(fields) - set(BookingDraft.model_fields)
        if unknown:
            raise ValidationError(f"Unknown booking field(s): {', '.join(sorted(unknown))}")

        try:
            draft = BookingDraft.model_validate({**self.draft.model_dump(), **fields})
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise ValidationError(first["msg"], field=field) from exc

        timing_changed = any(
            getattr(draft, name) != getattr(self.draft, name) for name in _TIMING_FIELDS
        )
        self.draft = draft
        self.error = None
        if timing_changed:
            self.token += 1

        if not all(getattr(draft, name) is not None for name in _TIMING_FIELDS):
            self.state = BookingState.EDITING
            self.message = None
            return None

        if draft.end_time <= draft.start_time:
            self.state = BookingState.EDITING
            self.message = INVALID_WINDOW_MESSAGE
            return None

        if timing_changed or self.state == BookingState.EDITING:
            if not timing_changed:
                self.token += 1
            self.state = BookingState.CHECKING
            self.message = None
            return self.token
        return None

    def cancel(self) -> None:
        with self._lock:
            if self.state == BookingState.COMMITTED:
                raise ValidationError("Booking is already committed")
            if self.state == BookingState.SUBMITTING:
                raise ValidationError("A submit is already in progress")
            self.state = BookingState.CANCELLED
            self.message = None
        logger.debug("Booking %s cancelled", self.id)

    # ------------------------------------------------------------------
    # Live (advisory) availability check
    # ------------------------------------------------------------------

    def apply_check_result(self, token: int, result: AvailabilityResult) -> bool:
        """Apply a live-check result if it belongs to the current attempt."""
        with self._lock:
            return self._apply_result(token, result)

    def _apply_result(self, token: int, result: AvailabilityResult) -> bool:
        if token != self.token or self.state != BookingState.CHECKING:
            logger.debug(
                "Discarding stale availability result for booking %s (token %s, current %s)",
                self.id,
                token,
                self.token,
            )
            return False

        if result.status == AvailabilityStatus.AVAILABLE:
            self.state = BookingState.VALID
            self.message = None
        elif result.status == AvailabilityStatus.CONFLICT:
            self.state = BookingState.CONFLICT
            self.message = CONFLICT_MESSAGE
        else:
            self.state = BookingState.UNKNOWN
            self.message = UNKNOWN_MESSAGE
        return True

    async def live_check(self, token: int, delay: float | None = None) -> bool:
        """Debounced live check for *token*.

        Waits out the quiescence period first; if another edit arrived in the
        meantime no lookup is made. Returns whether a result was applied.
        """
        wait = self.settings.live_check_delay if delay is None else delay
        if wait > 0:
            await asyncio.sleep(wait)
        if token != self.token or self.state != BookingState.CHECKING:
            return False

        draft = self.draft
        result = await asyncio.to_thread(
            self.checker.check,
            self.lecturer_id,
            draft.scheduled_date,
            draft.start_time,
            draft.end_time,
        )
        return self.apply_check_result(token, result)

    # ------------------------------------------------------------------
    # Submit (authoritative)
    # ------------------------------------------------------------------

    def submit(self) -> Schedule:
        with self._lock:
            self._ensure_editable()
            if self.state == BookingState.CONFLICT:
                raise ConflictError(self.message or CONFLICT_MESSAGE)

            try:
                request = self._build_request()
            except ValidationError as exc:
                self._reject(exc)
                raise

            self.state = BookingState.SUBMITTING

        try:
            schedule = self.booker.book(request)
        except SchedulingError as exc:
            with self._lock:
                self._reject(exc)
            raise

        with self._lock:
            self.schedule = schedule
            self.state = BookingState.COMMITTED
            self.message = None
            self.error = None
        return schedule

    def view(self) -> BookingView:
        return BookingView(
            id=self.id,
            lecturer_id=self.lecturer_id,
            state=self.state,
            token=self.token,
            draft=self.draft,
            message=self.message,
            error=self.error,
            schedule_id=self.schedule.id if self.schedule else None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_editable(self) -> None:
        if self.state in _TERMINAL_STATES:
            raise ValidationError(f"Booking is already {self.state.value}")
        if self.state == BookingState.SUBMITTING:
            raise ValidationError("A submit is already in progress")

    def _build_request(self) -> ScheduleCreate:
        for name in _REQUIRED_FIELDS:
            if getattr(self.draft, name) in (None, ""):
                raise ValidationError(f"{name.replace('_', ' ').capitalize()} is required", field=name)
        validate_window(self.draft.start_time, self.draft.end_time)
        return ScheduleCreate(
            lecturer_id=self.lecturer_id,
            class_id=self.draft.class_id,
            scheduled_date=self.draft.scheduled_date,
            start_time=self.draft.start_time,
            end_time=self.draft.end_time,
            location=self.draft.location or None,
            notes=self.draft.notes or None,
        )

    def _reject(self, exc: SchedulingError) -> None:
        if self.state in _TERMINAL_STATES:
            return
        self.state = BookingState.EDITING
        self.error = exc.message
        self.message = CONFLICT_MESSAGE if isinstance(exc, ConflictError) else None
        logger.info("Booking %s rejected: %s", self.id, exc.message)
        self.bus.publish(
            BookingRejected(
                booking_id=self.id,
                lecturer_id=self.lecturer_id,
                reason=exc.message,
                error_type=type(exc).__name__,
            )
        )
