"""In-memory repositories for lecturers, classes, schedules and activity."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from course_scheduler.domain.models import (
    ActivityEntry,
    ClassSession,
    ClassStatus,
    Lecturer,
    LecturerStatus,
    Schedule,
    ScheduleStatus,
)
from course_scheduler.errors import ConflictError, NotFoundError
from course_scheduler.services.conflicts import find_conflicts

if TYPE_CHECKING:
    from course_scheduler.domain.booking import BookingValidator

logger = logging.getLogger(__name__)


class LecturerRepository:
    """Dict-backed store for Lecturer instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Lecturer] = {}

    def add(self, lecturer: Lecturer) -> None:
        self._store[lecturer.id] = lecturer

    def get(self, lecturer_id: str) -> Lecturer | None:
        return self._store.get(lecturer_id)

    def list_by_status(self, status: LecturerStatus | None) -> list[Lecturer]:
        """Return lecturers with *status* (all when ``None``), ordered by name."""
        lecturers = [
            lec for lec in self._store.values() if status is None or lec.status == status
        ]
        return sorted(lecturers, key=lambda lec: lec.name.lower())


class ClassRepository:
    """Dict-backed store for ClassSession instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, ClassSession] = {}

    def add(self, class_session: ClassSession) -> None:
        self._store[class_session.id] = class_session

    def get(self, class_id: str) -> ClassSession | None:
        return self._store.get(class_id)

    def list_by_status(self, status: ClassStatus) -> list[ClassSession]:
        classes = [c for c in self._store.values() if c.status == status]
        return sorted(classes, key=lambda c: c.name.lower())


class ScheduleRepository:
    """Dict-backed store for Schedule instances.

    Writes go through :meth:`add_if_free`, which re-applies the no-overlap rule
    under a lock so that two racing bookings cannot both land.
    """

    def __init__(
        self,
        lecturer_repo: LecturerRepository | None = None,
        class_repo: ClassRepository | None = None,
    ) -> None:
        self._store: dict[str, Schedule] = {}
        self._lock = threading.Lock()
        self.lecturer_repo = lecturer_repo
        self.class_repo = class_repo

    def get(self, schedule_id: str) -> Schedule | None:
        return self._store.get(schedule_id)

    def list_all(self) -> list[Schedule]:
        return list(self._store.values())

    def list_for_lecturer_on(
        self,
        lecturer_id: str,
        scheduled_date: date,
        status: ScheduleStatus = ScheduleStatus.SCHEDULED,
    ) -> list[Schedule]:
        return [
            s
            for s in self._store.values()
            if s.lecturer_id == lecturer_id
            and s.scheduled_date == scheduled_date
            and s.status == status
        ]

    def list_upcoming(
        self,
        from_date: date,
        status: ScheduleStatus = ScheduleStatus.SCHEDULED,
    ) -> list[Schedule]:
        """Schedules with *status* on or after *from_date*, ordered by date then start."""
        upcoming = [
            s
            for s in self._store.values()
            if s.status == status and s.scheduled_date >= from_date
        ]
        return sorted(upcoming, key=lambda s: (s.scheduled_date, s.start_time))

    def add_if_free(self, schedule: Schedule) -> Schedule:
        """Insert *schedule* unless it references unknown records or double-books
        its lecturer.

        Raises ``NotFoundError`` or ``ConflictError``; nothing is stored in
        either case.
        """
        with self._lock:
            if self.lecturer_repo is not None and self.lecturer_repo.get(schedule.lecturer_id) is None:
                raise NotFoundError(f"Lecturer {schedule.lecturer_id} not found", field="lecturer_id")
            if self.class_repo is not None and self.class_repo.get(schedule.class_id) is None:
                raise NotFoundError(f"Class {schedule.class_id} not found", field="class_id")

            if schedule.status == ScheduleStatus.SCHEDULED:
                clashes = find_conflicts(
                    schedule.lecturer_id,
                    schedule.scheduled_date,
                    schedule.start_time,
                    schedule.end_time,
                    self._store.values(),
                    exclude_schedule_id=schedule.id,
                )
                if clashes:
                    logger.info(
                        "Rejected schedule for lecturer %s on %s: overlaps %s",
                        schedule.lecturer_id,
                        schedule.scheduled_date,
                        [c.id for c in clashes],
                    )
                    raise ConflictError(
                        "Lecturer is already booked for an overlapping time slot.",
                        conflicting_schedule_ids=[c.id for c in clashes],
                    )

            now = datetime.now(timezone.utc)
            schedule.created_at = now
            schedule.updated_at = now
            self._store[schedule.id] = schedule
            return schedule


class ActivityRepository:
    """List-backed store for ActivityEntry instances."""

    def __init__(self) -> None:
        self._entries: list[ActivityEntry] = []

    def add(self, entry: ActivityEntry) -> None:
        self._entries.append(entry)

    def list_recent(self, limit: int = 10) -> list[ActivityEntry]:
        ordered = sorted(self._entries, key=lambda e: e.timestamp, reverse=True)
        return ordered[:limit]


class BookingRepository:
    """Dict-backed store for open booking sessions, keyed by booking id.

    Sessions are removed once committed or cancelled.
    """

    def __init__(self) -> None:
        self._store: dict[str, BookingValidator] = {}

    def add(self, booking: BookingValidator) -> None:
        self._store[booking.id] = booking

    def get(self, booking_id: str) -> BookingValidator | None:
        return self._store.get(booking_id)

    def remove(self, booking_id: str) -> None:
        self._store.pop(booking_id, None)


# ---------------------------------------------------------------------------
# Seed data – a small program useful for trying the booking flow locally
# ---------------------------------------------------------------------------


def seed(lecturer_repo: LecturerRepository, class_repo: ClassRepository) -> None:
    lecturer_repo.add(
        Lecturer(
            name="Grace Mensah",
            email="grace.mensah@example.org",
            subjects=["Old Testament Survey", "Hermeneutics", "Church History"],
        )
    )
    lecturer_repo.add(
        Lecturer(
            name="Daniel Okafor",
            email="daniel.okafor@example.org",
            phone="+234 800 000 0000",
            subjects=["Gospels", "Pauline Epistles"],
        )
    )
    lecturer_repo.add(
        Lecturer(
            name="Ruth Adeyemi",
            email="ruth.adeyemi@example.org",
            subjects=["Pastoral Care"],
            status=LecturerStatus.ON_LEAVE,
        )
    )

    class_repo.add(
        ClassSession(name="Foundations Class A", class_center_name="Central Hall", district="North")
    )
    class_repo.add(
        ClassSession(name="Leadership Evening Class", class_center_name="Grace Chapel", district="East")
    )
    class_repo.add(
        ClassSession(name="Diploma Cohort 2023", status=ClassStatus.COMPLETED, district="West")
    )
