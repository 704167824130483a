"""Service for detecting lecturer double-bookings between schedules."""

from __future__ import annotations

from datetime import date, time
from typing import Iterable

from course_scheduler.domain.models import Schedule, ScheduleStatus


def overlaps(start: time, end: time, other_start: time, other_end: time) -> bool:
    """Half-open ``[start, end)`` intersection test.

    Back-to-back ranges (one ends exactly when the other starts) do not overlap.
    """
    return start < other_end and other_start < end


def find_conflicts(
    lecturer_id: str,
    scheduled_date: date,
    start_time: time,
    end_time: time,
    existing_schedules: Iterable[Schedule],
    exclude_schedule_id: str | None = None,
) -> list[Schedule]:
    """Return the ``Scheduled`` bookings of *lecturer_id* on *scheduled_date* that
    overlap the given window.

    Completed or cancelled schedules never block a slot.
    """
    return [
        schedule
        for schedule in existing_schedules
        if schedule.lecturer_id == lecturer_id
        and schedule.scheduled_date == scheduled_date
        and schedule.status == ScheduleStatus.SCHEDULED
        and schedule.id != exclude_schedule_id
        and overlaps(start_time, end_time, schedule.start_time, schedule.end_time)
    ]
