"""Read models for the schedule overview: upcoming list and headline counts."""

from __future__ import annotations

from datetime import date

from course_scheduler.domain.models import (
    LecturerStatus,
    ScheduleStatus,
    ScheduleSummary,
    UpcomingSchedule,
)
from course_scheduler.repos.memory import (
    ClassRepository,
    LecturerRepository,
    ScheduleRepository,
)


def upcoming_schedules(
    schedule_repo: ScheduleRepository,
    lecturer_repo: LecturerRepository,
    class_repo: ClassRepository,
    from_date: date,
    status: ScheduleStatus = ScheduleStatus.SCHEDULED,
    limit: int | None = None,
) -> list[UpcomingSchedule]:
    """Schedules from *from_date* on, joined with lecturer and class names.

    Ordered by date then start time. A schedule whose lecturer or class has
    disappeared keeps ``None`` for the missing name.
    """
    rows: list[UpcomingSchedule] = []
    for schedule in schedule_repo.list_upcoming(from_date, status):
        lecturer = lecturer_repo.get(schedule.lecturer_id)
        class_session = class_repo.get(schedule.class_id)
        rows.append(
            UpcomingSchedule(
                id=schedule.id,
                class_id=schedule.class_id,
                class_name=class_session.name if class_session else None,
                lecturer_id=schedule.lecturer_id,
                lecturer_name=lecturer.name if lecturer else None,
                lecturer_email=lecturer.email if lecturer else None,
                scheduled_date=schedule.scheduled_date,
                start_time=schedule.start_time,
                end_time=schedule.end_time,
                location=schedule.location,
                notes=schedule.notes,
                status=schedule.status,
            )
        )
    if limit is not None:
        rows = rows[:limit]
    return rows


def schedule_summary(
    schedule_repo: ScheduleRepository,
    lecturer_repo: LecturerRepository,
    today: date,
) -> ScheduleSummary:
    active = lecturer_repo.list_by_status(LecturerStatus.ACTIVE)
    upcoming = schedule_repo.list_upcoming(today)
    subjects = {subject for lec in active for subject in lec.subjects}
    return ScheduleSummary(
        available_lecturers=len(active),
        upcoming_schedules=len(upcoming),
        todays_schedules=sum(1 for s in upcoming if s.scheduled_date == today),
        total_subjects=len(subjects),
    )
