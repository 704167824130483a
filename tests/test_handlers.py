"""Tests for the event bus and the activity feed handlers."""

from __future__ import annotations

from datetime import date, time

import pytest

from course_scheduler.domain.bus import EventBus
from course_scheduler.domain.events import BookingRejected, ScheduleCreated
from course_scheduler.domain.handlers import HandlerRegistry
from course_scheduler.domain.models import ClassSession, Lecturer, Schedule
from course_scheduler.repos.memory import (
    ActivityRepository,
    ClassRepository,
    LecturerRepository,
    ScheduleRepository,
)


@pytest.fixture()
def env():
    bus = EventBus()
    lecturer_repo = LecturerRepository()
    class_repo = ClassRepository()
    schedule_repo = ScheduleRepository()
    activity_repo = ActivityRepository()
    HandlerRegistry(
        bus=bus,
        lecturer_repo=lecturer_repo,
        class_repo=class_repo,
        schedule_repo=schedule_repo,
        activity_repo=activity_repo,
    )

    class Env:
        pass

    e = Env()
    e.bus = bus
    e.lecturer_repo = lecturer_repo
    e.class_repo = class_repo
    e.schedule_repo = schedule_repo
    e.activity_repo = activity_repo
    return e


def test_schedule_created_records_activity(env):
    lecturer = Lecturer(name="Grace Mensah", email="grace@example.org")
    class_session = ClassSession(name="Foundations Class A")
    env.lecturer_repo.add(lecturer)
    env.class_repo.add(class_session)
    schedule = env.schedule_repo.add_if_free(
        Schedule(
            class_id=class_session.id,
            lecturer_id=lecturer.id,
            scheduled_date=date(2024, 2, 1),
            start_time=time(8),
            end_time=time(9, 30),
        )
    )

    env.bus.publish(
        ScheduleCreated(schedule_id=schedule.id, lecturer_id=lecturer.id, class_id=class_session.id)
    )

    [entry] = env.activity_repo.list_recent()
    assert entry.type == "schedule_created"
    assert entry.message == "Foundations Class A scheduled with Grace Mensah on 2024-02-01 08:00-09:30"
    assert entry.payload["schedule_id"] == schedule.id


def test_unknown_schedule_is_ignored(env):
    env.bus.publish(ScheduleCreated(schedule_id="gone", lecturer_id="l", class_id="c"))
    assert env.activity_repo.list_recent() == []


def test_validation_rejections_are_not_recorded(env):
    env.bus.publish(
        BookingRejected(lecturer_id="l", reason="End time must be after start time.", error_type="ValidationError")
    )
    env.bus.publish(
        BookingRejected(lecturer_id="l", reason="Lecturer is busy", error_type="ConflictError")
    )

    [entry] = env.activity_repo.list_recent()
    assert entry.type == "booking_rejected"
    assert entry.message == "Booking for l rejected: Lecturer is busy"


def test_handler_errors_reach_the_publisher(env):
    seen: list[str] = []

    def broken(event):
        raise RuntimeError("boom")

    env.bus.subscribe(ScheduleCreated, lambda e: seen.append(e.schedule_id))
    env.bus.subscribe(ScheduleCreated, broken)

    with pytest.raises(RuntimeError, match="boom"):
        env.bus.publish(ScheduleCreated(schedule_id="s1", lecturer_id="l", class_id="c"))

    assert seen == ["s1"]
