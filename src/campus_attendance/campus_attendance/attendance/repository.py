from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Attendance, NewAttendance, StudentAttendance


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        raise NotImplementedError

    def get_for_session_and_student(self, *, session_id: int, student_id: int) -> Optional[Attendance]:
        raise NotImplementedError

    def create(self, new: NewAttendance) -> Attendance:
        """Insert a row.

        Raises DuplicateKeyError when the (session, student) pair already exists.
        """

        raise NotImplementedError

    def update(self, *, attendance_id: int, changes: Mapping[str, Any]) -> Optional[Attendance]:
        raise NotImplementedError

    def delete(self, *, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_by_session(self, session_id: int) -> Sequence[Attendance]:
        """Rows of one session in creation order."""

        raise NotImplementedError

    def list_by_student(self, student_id: int) -> Sequence[StudentAttendance]:
        """History of one student, most recently recorded first."""

        raise NotImplementedError

    def list_by_student_and_course(self, *, student_id: int, course_id: int) -> Sequence[StudentAttendance]:
        """History of one student in one course, latest session start first."""

        raise NotImplementedError
