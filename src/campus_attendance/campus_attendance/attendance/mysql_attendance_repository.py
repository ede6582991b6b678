from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Attendance, NewAttendance, StudentAttendance
from .repository import AttendanceRepository

_COLUMNS = """
    a.attendance_id, a.session_id, a.student_id, a.status, a.check_in_method,
    a.check_in_time, a.marked_by_id, a.remarks, a.created_at, a.updated_at
"""

_HISTORY_COLUMNS = _COLUMNS + ", s.course_id, s.title AS session_title, s.start_time AS session_start_time"

_WRITABLE = {"status", "check_in_method", "check_in_time", "marked_by_id", "remarks"}


def _to_db(value: Any) -> Any:
    if isinstance(value, (AttendanceStatus, CheckInMethod)):
        return value.value
    return value


def _row_to_attendance(r: dict) -> Attendance:
    return Attendance(
        attendance_id=int(r["attendance_id"]),
        session_id=int(r["session_id"]),
        student_id=int(r["student_id"]),
        status=AttendanceStatus(r["status"]),
        check_in_method=CheckInMethod(r["check_in_method"]),
        check_in_time=r.get("check_in_time"),
        marked_by_id=int(r["marked_by_id"]) if r.get("marked_by_id") is not None else None,
        remarks=r.get("remarks"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _row_to_history(r: dict) -> StudentAttendance:
    return StudentAttendance(
        attendance=_row_to_attendance(r),
        course_id=int(r["course_id"]),
        session_title=r["session_title"],
        session_start_time=r["session_start_time"],
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, cur, attendance_id: int) -> Optional[Attendance]:
        cur.execute(f"SELECT {_COLUMNS} FROM attendances a WHERE a.attendance_id=%s", (int(attendance_id),))
        r = fetchone(cur)
        return _row_to_attendance(r) if r else None

    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(cur, attendance_id)

    def get_for_session_and_student(self, *, session_id: int, student_id: int) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances a WHERE a.session_id=%s AND a.student_id=%s",
                (int(session_id), int(student_id)),
            )
            r = fetchone(cur)
            return _row_to_attendance(r) if r else None

    def create(self, new: NewAttendance) -> Attendance:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendances(
                    session_id, student_id, status, check_in_method,
                    check_in_time, marked_by_id, remarks
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(new.session_id),
                    int(new.student_id),
                    new.status.value,
                    new.check_in_method.value,
                    new.check_in_time,
                    new.marked_by_id,
                    new.remarks,
                ),
            )
            return self._select_one(cur, int(cur.lastrowid))

    def update(self, *, attendance_id: int, changes: Mapping[str, Any]) -> Optional[Attendance]:
        cols = [k for k in changes if k in _WRITABLE]
        with db_cursor(self._conn_factory) as (_, cur):
            if cols:
                assignments = ", ".join(f"{c}=%s" for c in cols)
                params = [_to_db(changes[c]) for c in cols] + [int(attendance_id)]
                cur.execute(f"UPDATE attendances SET {assignments} WHERE attendance_id=%s", tuple(params))
            return self._select_one(cur, attendance_id)

    def delete(self, *, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendances WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_by_session(self, session_id: int) -> Sequence[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances a WHERE a.session_id=%s "
                "ORDER BY a.created_at ASC, a.attendance_id ASC",
                (int(session_id),),
            )
            return [_row_to_attendance(r) for r in fetchall(cur)]

    def list_by_student(self, student_id: int) -> Sequence[StudentAttendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_HISTORY_COLUMNS}
                FROM attendances a
                JOIN sessions s ON s.session_id = a.session_id
                WHERE a.student_id=%s
                ORDER BY a.created_at DESC, a.attendance_id DESC
                """,
                (int(student_id),),
            )
            return [_row_to_history(r) for r in fetchall(cur)]

    def list_by_student_and_course(self, *, student_id: int, course_id: int) -> Sequence[StudentAttendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_HISTORY_COLUMNS}
                FROM attendances a
                JOIN sessions s ON s.session_id = a.session_id
                WHERE a.student_id=%s AND s.course_id=%s
                ORDER BY s.start_time DESC, a.attendance_id DESC
                """,
                (int(student_id), int(course_id)),
            )
            return [_row_to_history(r) for r in fetchall(cur)]
