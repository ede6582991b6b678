from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause
from .model import NewSession, Session
from .repository import SessionRepository

_COLUMNS = """
    s.session_id, s.title, s.description, s.course_id, s.created_by_id,
    s.start_time, s.end_time, s.attendance_code, s.status, s.is_code_active,
    s.created_at, s.updated_at
"""

_WRITABLE = {"title", "description", "start_time", "end_time", "attendance_code", "status", "is_code_active"}


def _to_db(value: Any) -> Any:
    if isinstance(value, SessionStatus):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


def _row_to_session(r: dict) -> Session:
    return Session(
        session_id=int(r["session_id"]),
        title=r["title"],
        description=r.get("description"),
        course_id=int(r["course_id"]),
        created_by_id=int(r["created_by_id"]),
        start_time=r["start_time"],
        end_time=r["end_time"],
        attendance_code=r["attendance_code"],
        status=SessionStatus(r["status"]),
        is_code_active=as_bool(r.get("is_code_active")),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, cur, session_id: int) -> Optional[Session]:
        cur.execute(f"SELECT {_COLUMNS} FROM sessions s WHERE s.session_id=%s", (int(session_id),))
        r = fetchone(cur)
        return _row_to_session(r) if r else None

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(cur, session_id)

    def get_by_code(self, code: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions s WHERE s.attendance_code=%s", (code,))
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def create(self, new: NewSession) -> Session:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sessions(
                    title, description, course_id, created_by_id,
                    start_time, end_time, attendance_code, status, is_code_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    new.title,
                    new.description,
                    int(new.course_id),
                    int(new.created_by_id),
                    new.start_time,
                    new.end_time,
                    new.attendance_code,
                    SessionStatus.SCHEDULED.value,
                ),
            )
            return self._select_one(cur, int(cur.lastrowid))

    def update(self, *, session_id: int, changes: Mapping[str, Any]) -> Optional[Session]:
        cols = [k for k in changes if k in _WRITABLE]
        with db_cursor(self._conn_factory) as (_, cur):
            if cols:
                assignments = ", ".join(f"{c}=%s" for c in cols)
                params = [_to_db(changes[c]) for c in cols] + [int(session_id)]
                cur.execute(f"UPDATE sessions SET {assignments} WHERE session_id=%s", tuple(params))
            return self._select_one(cur, session_id)

    def delete(self, *, session_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sessions WHERE session_id=%s", (int(session_id),))
            return cur.rowcount > 0

    def list_all(self) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions s ORDER BY s.start_time DESC, s.session_id DESC")
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_by_creator(self, user_id: int) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM sessions s WHERE s.created_by_id=%s "
                "ORDER BY s.start_time DESC, s.session_id DESC",
                (int(user_id),),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_by_course(self, course_id: int) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM sessions s WHERE s.course_id=%s "
                "ORDER BY s.start_time DESC, s.session_id DESC",
                (int(course_id),),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_for_courses_between(
        self, *, course_ids: Sequence[int], start: datetime, end: datetime
    ) -> Sequence[Session]:
        if not course_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM sessions s
                WHERE s.course_id IN ({in_clause(course_ids)})
                  AND s.start_time BETWEEN %s AND %s
                ORDER BY s.start_time ASC, s.session_id ASC
                """,
                tuple(int(c) for c in course_ids) + (start, end),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_upcoming_for_courses(self, *, course_ids: Sequence[int], now: datetime) -> Sequence[Session]:
        if not course_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM sessions s
                WHERE s.course_id IN ({in_clause(course_ids)})
                  AND (s.status=%s OR (s.status=%s AND s.end_time > %s))
                ORDER BY s.start_time ASC, s.session_id ASC
                """,
                tuple(int(c) for c in course_ids)
                + (SessionStatus.ACTIVE.value, SessionStatus.SCHEDULED.value, now),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def close_expired(self, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET status=%s, is_code_active=0 WHERE status=%s AND end_time < %s",
                (SessionStatus.COMPLETED.value, SessionStatus.ACTIVE.value, now),
            )
            return int(cur.rowcount)
