from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Course:
    """Course as supplied by the course directory.

    ``teacher_id`` is the identity-provider user id of the assigned teacher.
    """

    course_id: int
    name: str
    code: Optional[str] = None
    teacher_id: Optional[int] = None


@dataclass(frozen=True)
class Group:
    group_id: int
    name: str
    program_id: Optional[int] = None
    academic_year: int = 1


@dataclass(frozen=True)
class StudentProfile:
    """Directory record of a student (distinct from the login account)."""

    student_id: int
    full_name: str
    user_id: Optional[int] = None
    group_id: Optional[int] = None


@dataclass(frozen=True)
class TeacherProfile:
    teacher_id: int
    full_name: str
    user_id: Optional[int] = None
