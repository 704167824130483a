"""Service answering whether a lecturer is free for a date/time window."""

from __future__ import annotations

import logging
from datetime import date, time

from course_scheduler.domain.models import AvailabilityResult, AvailabilityStatus
from course_scheduler.repos.memory import ScheduleRepository
from course_scheduler.services.conflicts import find_conflicts

logger = logging.getLogger(__name__)


class AvailabilityChecker:
    """Read-only availability lookup over the schedule store.

    A failed lookup is reported as ``AvailabilityStatus.UNKNOWN`` rather than
    raised; whether that blocks a booking is the caller's decision.
    """

    def __init__(self, schedule_repo: ScheduleRepository) -> None:
        self.schedule_repo = schedule_repo

    def check(
        self,
        lecturer_id: str,
        scheduled_date: date,
        start_time: time,
        end_time: time,
        exclude_schedule_id: str | None = None,
    ) -> AvailabilityResult:
        try:
            existing = self.schedule_repo.list_for_lecturer_on(lecturer_id, scheduled_date)
        except Exception as exc:
            logger.warning(
                "Availability lookup failed for lecturer %s on %s: %s",
                lecturer_id,
                scheduled_date,
                exc,
            )
            return AvailabilityResult(status=AvailabilityStatus.UNKNOWN, error=str(exc))

        clashes = find_conflicts(
            lecturer_id,
            scheduled_date,
            start_time,
            end_time,
            existing,
            exclude_schedule_id=exclude_schedule_id,
        )
        if clashes:
            return AvailabilityResult(
                status=AvailabilityStatus.CONFLICT,
                conflicting_schedule_ids=[c.id for c in clashes],
            )
        return AvailabilityResult(status=AvailabilityStatus.AVAILABLE)

    def is_available(
        self,
        lecturer_id: str,
        scheduled_date: date,
        start_time: time,
        end_time: time,
        exclude_schedule_id: str | None = None,
    ) -> bool:
        """``True`` only when the lookup succeeded and found no overlap."""
        return self.check(
            lecturer_id, scheduled_date, start_time, end_time, exclude_schedule_id
        ).available
