from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Set

from ..core.enums import DayOfWeek, ScheduleType, TimeSlot
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import NewSchedule, Schedule
from .repository import ScheduleRepository

_COLUMNS = """
    sc.schedule_id, sc.course_id, sc.group_id, sc.semester, sc.semester_weeks,
    sc.day_of_week, sc.start_slot, sc.duration, sc.schedule_type, sc.room_number,
    sc.color, sc.is_active, sc.created_at, sc.updated_at
"""

# MySQL ENUM columns sort by declaration index, which is the grid order.
_ORDER = "ORDER BY sc.day_of_week ASC, sc.start_slot ASC, sc.schedule_id ASC"

_WRITABLE = {
    "course_id",
    "group_id",
    "semester",
    "semester_weeks",
    "day_of_week",
    "start_slot",
    "duration",
    "schedule_type",
    "room_number",
    "color",
    "is_active",
}


def _to_db(value: Any) -> Any:
    if isinstance(value, (DayOfWeek, TimeSlot, ScheduleType)):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


def _row_to_schedule(r: dict) -> Schedule:
    return Schedule(
        schedule_id=int(r["schedule_id"]),
        course_id=int(r["course_id"]),
        group_id=int(r["group_id"]),
        semester=int(r["semester"]),
        semester_weeks=int(r["semester_weeks"]),
        day_of_week=DayOfWeek(r["day_of_week"]),
        start_slot=TimeSlot(r["start_slot"]),
        duration=int(r["duration"]),
        schedule_type=ScheduleType(r["schedule_type"]),
        room_number=r["room_number"],
        color=r.get("color"),
        is_active=as_bool(r.get("is_active")),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules sc WHERE sc.schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def create(self, new: NewSchedule) -> Schedule:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO schedules(
                    course_id, group_id, semester, semester_weeks, day_of_week,
                    start_slot, duration, schedule_type, room_number, color, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(new.course_id),
                    int(new.group_id),
                    int(new.semester),
                    int(new.semester_weeks),
                    new.day_of_week.value,
                    new.start_slot.value,
                    int(new.duration),
                    new.schedule_type.value,
                    new.room_number,
                    new.color,
                    int(new.is_active),
                ),
            )
            schedule_id = int(cur.lastrowid)
            cur.execute(f"SELECT {_COLUMNS} FROM schedules sc WHERE sc.schedule_id=%s", (schedule_id,))
            return _row_to_schedule(fetchone(cur))

    def update(self, *, schedule_id: int, changes: Mapping[str, Any]) -> Optional[Schedule]:
        cols = [k for k in changes if k in _WRITABLE]
        with db_cursor(self._conn_factory) as (_, cur):
            if cols:
                assignments = ", ".join(f"{c}=%s" for c in cols)
                params = [_to_db(changes[c]) for c in cols] + [int(schedule_id)]
                cur.execute(f"UPDATE schedules SET {assignments} WHERE schedule_id=%s", tuple(params))
            cur.execute(f"SELECT {_COLUMNS} FROM schedules sc WHERE sc.schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def delete(self, *, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM schedules WHERE schedule_id=%s", (int(schedule_id),))
            return cur.rowcount > 0

    def list_all(self) -> Sequence[Schedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules sc {_ORDER}")
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def list_active(
        self,
        *,
        group_id: Optional[int] = None,
        course_id: Optional[int] = None,
        teacher_user_id: Optional[int] = None,
        semester: Optional[int] = None,
        day_of_week: Optional[DayOfWeek] = None,
    ) -> Sequence[Schedule]:
        joins = ""
        clauses = ["sc.is_active=1"]
        params: list[object] = []

        if group_id is not None:
            clauses.append("sc.group_id=%s")
            params.append(int(group_id))
        if course_id is not None:
            clauses.append("sc.course_id=%s")
            params.append(int(course_id))
        if teacher_user_id is not None:
            joins = "JOIN courses c ON c.course_id = sc.course_id"
            clauses.append("c.teacher_id=%s")
            params.append(int(teacher_user_id))
        if semester is not None:
            clauses.append("sc.semester=%s")
            params.append(int(semester))
        if day_of_week is not None:
            clauses.append("sc.day_of_week=%s")
            params.append(DayOfWeek(day_of_week).value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules sc {joins} WHERE {where} {_ORDER}", tuple(params))
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def course_ids_for_group(self, group_id: int) -> Set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT DISTINCT course_id FROM schedules WHERE group_id=%s AND is_active=1",
                (int(group_id),),
            )
            return {int(r["course_id"]) for r in fetchall(cur)}
