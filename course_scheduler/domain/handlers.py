"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

from course_scheduler.domain.bus import EventBus
from course_scheduler.domain.events import BookingRejected, ScheduleCreated
from course_scheduler.domain.models import ActivityEntry
from course_scheduler.repos.memory import (
    ActivityRepository,
    ClassRepository,
    LecturerRepository,
    ScheduleRepository,
)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the repositories."""

    def __init__(
        self,
        bus: EventBus,
        lecturer_repo: LecturerRepository,
        class_repo: ClassRepository,
        schedule_repo: ScheduleRepository,
        activity_repo: ActivityRepository,
    ) -> None:
        self.bus = bus
        self.lecturer_repo = lecturer_repo
        self.class_repo = class_repo
        self.schedule_repo = schedule_repo
        self.activity_repo = activity_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ScheduleCreated, self.on_schedule_created)
        self.bus.subscribe(BookingRejected, self.on_booking_rejected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_schedule_created(self, event: ScheduleCreated) -> None:
        stored = self.schedule_repo.get(event.schedule_id)
        if stored is None:
            return

        lecturer = self.lecturer_repo.get(event.lecturer_id)
        class_session = self.class_repo.get(event.class_id)
        lecturer_name = lecturer.name if lecturer else event.lecturer_id
        class_name = class_session.name if class_session else event.class_id

        self.activity_repo.add(
            ActivityEntry(
                type="schedule_created",
                message=(
                    f"{class_name} scheduled with {lecturer_name} on "
                    f"{stored.scheduled_date.isoformat()} "
                    f"{stored.start_time.strftime('%H:%M')}-{stored.end_time.strftime('%H:%M')}"
                ),
                payload={
                    "schedule_id": stored.id,
                    "lecturer_id": event.lecturer_id,
                    "class_id": event.class_id,
                },
            )
        )

    def on_booking_rejected(self, event: BookingRejected) -> None:
        # Validation rejections stay out of the feed.
        if event.error_type == "ValidationError":
            return
        lecturer = self.lecturer_repo.get(event.lecturer_id)
        lecturer_name = lecturer.name if lecturer else event.lecturer_id
        self.activity_repo.add(
            ActivityEntry(
                type="booking_rejected",
                message=f"Booking for {lecturer_name} rejected: {event.reason}",
                payload={
                    "booking_id": event.booking_id,
                    "lecturer_id": event.lecturer_id,
                    "error_type": event.error_type,
                },
            )
        )
