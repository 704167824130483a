"""Pickable lecturer and class lists for booking forms."""

from __future__ import annotations

from course_scheduler.domain.models import (
    ClassOption,
    ClassStatus,
    LecturerOption,
    LecturerStatus,
)
from course_scheduler.repos.memory import ClassRepository, LecturerRepository


def active_class_options(class_repo: ClassRepository) -> list[ClassOption]:
    """Classes that can be booked, i.e. ``Active`` ones, ordered by name."""
    return [
        ClassOption(id=c.id, name=c.name)
        for c in class_repo.list_by_status(ClassStatus.ACTIVE)
    ]


def lecturer_options(
    lecturer_repo: LecturerRepository,
    status: LecturerStatus | None = LecturerStatus.ACTIVE,
    search: str | None = None,
) -> list[LecturerOption]:
    """Lecturers with *status*, ordered by name.

    *search* is matched case-insensitively against name and email.
    """
    lecturers = lecturer_repo.list_by_status(status)
    term = (search or "").strip().lower()
    if term:
        lecturers = [
            lec
            for lec in lecturers
            if term in lec.name.lower() or term in lec.email.lower()
        ]
    return [
        LecturerOption(id=lec.id, name=lec.name, email=lec.email, subjects=lec.subjects)
        for lec in lecturers
    ]
