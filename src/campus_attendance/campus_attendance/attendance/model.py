from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckInMethod


@dataclass(frozen=True)
class Attendance:
    """One student's outcome for one session.

    ``student_id`` is the identity-provider user id, not the directory profile id.
    """

    attendance_id: int
    session_id: int
    student_id: int
    status: AttendanceStatus
    check_in_method: CheckInMethod
    check_in_time: Optional[datetime] = None
    marked_by_id: Optional[int] = None
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewAttendance:
    session_id: int
    student_id: int
    status: AttendanceStatus
    check_in_method: CheckInMethod
    check_in_time: Optional[datetime] = None
    marked_by_id: Optional[int] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class StudentAttendance:
    """Attendance joined with the session it belongs to (student history views)."""

    attendance: Attendance
    course_id: int
    session_title: str
    session_start_time: datetime


@dataclass(frozen=True)
class AttendanceSummary:
    session_id: int
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
