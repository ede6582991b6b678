from __future__ import annotations

from typing import Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Course, Group, StudentProfile, TeacherProfile
from .repository import DirectoryRepository


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


class MySQLDirectoryRepository(DirectoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_course(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT course_id, course_name, course_code, teacher_id FROM courses WHERE course_id=%s",
                (int(course_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Course(
                course_id=int(r["course_id"]),
                name=r["course_name"],
                code=r.get("course_code"),
                teacher_id=_opt_int(r.get("teacher_id")),
            )

    def get_group(self, group_id: int) -> Optional[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT group_id, group_name, program_id, academic_year FROM student_groups WHERE group_id=%s",
                (int(group_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Group(
                group_id=int(r["group_id"]),
                name=r["group_name"],
                program_id=_opt_int(r.get("program_id")),
                academic_year=int(r.get("academic_year") or 1),
            )

    def _get_student_where(self, column: str, value: int) -> Optional[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT student_id, full_name, user_id, group_id FROM students WHERE {column}=%s",
                (int(value),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return StudentProfile(
                student_id=int(r["student_id"]),
                full_name=r["full_name"],
                user_id=_opt_int(r.get("user_id")),
                group_id=_opt_int(r.get("group_id")),
            )

    def get_student(self, student_id: int) -> Optional[StudentProfile]:
        return self._get_student_where("student_id", student_id)

    def get_student_by_user(self, user_id: int) -> Optional[StudentProfile]:
        return self._get_student_where("user_id", user_id)

    def _get_teacher_where(self, column: str, value: int) -> Optional[TeacherProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT teacher_id, full_name, user_id FROM teachers WHERE {column}=%s",
                (int(value),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return TeacherProfile(
                teacher_id=int(r["teacher_id"]),
                full_name=r["full_name"],
                user_id=_opt_int(r.get("user_id")),
            )

    def get_teacher(self, teacher_id: int) -> Optional[TeacherProfile]:
        return self._get_teacher_where("teacher_id", teacher_id)

    def get_teacher_by_user(self, user_id: int) -> Optional[TeacherProfile]:
        return self._get_teacher_where("user_id", user_id)

    def map_student_user_ids(self, student_ids: Sequence[int]) -> Dict[int, Optional[int]]:
        ids = sorted({int(i) for i in student_ids})
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT student_id, user_id FROM students WHERE student_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            return {int(r["student_id"]): _opt_int(r.get("user_id")) for r in fetchall(cur)}
