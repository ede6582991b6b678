from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckInMethod
from ..core.exceptions import DuplicateKeyError, NotFoundError
from .model import Attendance, NewAttendance
from .repository import AttendanceRepository


def upsert_manual(
    repo: AttendanceRepository,
    *,
    session_id: int,
    student_user_id: int,
    status: AttendanceStatus,
    marked_by_id: int,
    check_in_time: datetime,
    remarks: Optional[str] = None,
) -> Attendance:
    """Write a manual attendance outcome keyed by (session, student).

    An existing row gets status/marked_by/method overwritten (remarks only when
    given); otherwise a row is inserted with ``check_in_time``.
    """

    changes = {
        "status": status,
        "marked_by_id": marked_by_id,
        "check_in_method": CheckInMethod.MANUAL,
    }
    if remarks is not None:
        changes["remarks"] = remarks

    existing = repo.get_for_session_and_student(session_id=session_id, student_id=student_user_id)
    if existing is None:
        try:
            return repo.create(
                NewAttendance(
                    session_id=session_id,
                    student_id=student_user_id,
                    status=status,
                    check_in_method=CheckInMethod.MANUAL,
                    check_in_time=check_in_time,
                    marked_by_id=marked_by_id,
                    remarks=remarks,
                )
            )
        except DuplicateKeyError:
            # lost a race with another writer for the same pair
            existing = repo.get_for_session_and_student(session_id=session_id, student_id=student_user_id)
            if existing is None:
                raise

    updated = repo.update(attendance_id=existing.attendance_id, changes=changes)
    if not updated:
        raise NotFoundError("Attendance record not found")
    return updated
