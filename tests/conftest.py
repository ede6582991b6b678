from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

import pytest

from src.campus_attendance.campus_attendance.attendance.model import Attendance, NewAttendance, StudentAttendance
from src.campus_attendance.campus_attendance.auth.principal import Principal
from src.campus_attendance.campus_attendance.container import Container, assemble
from src.campus_attendance.campus_attendance.core.enums import DayOfWeek, RequestStatus, Role, SessionStatus
from src.campus_attendance.campus_attendance.core.exceptions import DuplicateKeyError
from src.campus_attendance.campus_attendance.directory.model import Course, Group, StudentProfile, TeacherProfile
from src.campus_attendance.campus_attendance.leave_requests.model import LeaveRequest, NewLeaveRequest
from src.campus_attendance.campus_attendance.schedules import timegrid
from src.campus_attendance.campus_attendance.schedules.model import NewSchedule, Schedule
from src.campus_attendance.campus_attendance.sessions.model import NewSession, Session

_CLOCK_START = datetime(2026, 1, 1, 0, 0, 0)


class _Clock:
    """Strictly increasing timestamps for created_at ordering."""

    def __init__(self):
        self._ticks = itertools.count()

    def __call__(self) -> datetime:
        return _CLOCK_START + timedelta(seconds=next(self._ticks))


class InMemoryDirectory:
    def __init__(self):
        self.courses: Dict[int, Course] = {}
        self.groups: Dict[int, Group] = {}
        self.students: Dict[int, StudentProfile] = {}
        self.teachers: Dict[int, TeacherProfile] = {}

    def get_course(self, course_id: int) -> Optional[Course]:
        return self.courses.get(course_id)

    def get_group(self, group_id: int) -> Optional[Group]:
        return self.groups.get(group_id)

    def get_student(self, student_id: int) -> Optional[StudentProfile]:
        return self.students.get(student_id)

    def get_student_by_user(self, user_id: int) -> Optional[StudentProfile]:
        return next((s for s in self.students.values() if s.user_id == user_id), None)

    def get_teacher(self, teacher_id: int) -> Optional[TeacherProfile]:
        return self.teachers.get(teacher_id)

    def get_teacher_by_user(self, user_id: int) -> Optional[TeacherProfile]:
        return next((t for t in self.teachers.values() if t.user_id == user_id), None)

    def map_student_user_ids(self, student_ids: Sequence[int]) -> Dict[int, Optional[int]]:
        return {i: self.students[i].user_id for i in student_ids if i in self.students}


class InMemorySchedules:
    def __init__(self, directory: InMemoryDirectory, clock: _Clock):
        self._directory = directory
        self._clock = clock
        self._rows: Dict[int, Schedule] = {}
        self._ids = itertools.count(1)

    def _check_unique(self, candidate: Schedule) -> None:
        key = (candidate.group_id, candidate.day_of_week, candidate.start_slot, candidate.semester)
        for row in self._rows.values():
            if row.schedule_id == candidate.schedule_id:
                continue
            if (row.group_id, row.day_of_week, row.start_slot, row.semester) == key:
                raise DuplicateKeyError("Duplicate entry", key="uq_schedules_group_slot")

    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        return self._rows.get(schedule_id)

    def create(self, new: NewSchedule) -> Schedule:
        now = self._clock()
        schedule = Schedule(schedule_id=next(self._ids), created_at=now, updated_at=now, **vars(new))
        self._check_unique(schedule)
        self._rows[schedule.schedule_id] = schedule
        return schedule

    def update(self, *, schedule_id: int, changes: Mapping[str, Any]) -> Optional[Schedule]:
        current = self._rows.get(schedule_id)
        if not current:
            return None
        updated = replace(current, updated_at=self._clock(), **changes)
        self._check_unique(updated)
        self._rows[schedule_id] = updated
        return updated

    def delete(self, *, schedule_id: int) -> bool:
        return self._rows.pop(schedule_id, None) is not None

    @staticmethod
    def _sorted(rows: List[Schedule]) -> List[Schedule]:
        return sorted(
            rows,
            key=lambda s: (timegrid.day_index(s.day_of_week), timegrid.slot_index(s.start_slot), s.schedule_id),
        )

    def list_all(self) -> Sequence[Schedule]:
        return self._sorted(list(self._rows.values()))

    def list_active(
        self,
        *,
        group_id: Optional[int] = None,
        course_id: Optional[int] = None,
        teacher_user_id: Optional[int] = None,
        semester: Optional[int] = None,
        day_of_week: Optional[DayOfWeek] = None,
    ) -> Sequence[Schedule]:
        rows = []
        for s in self._rows.values():
            if not s.is_active:
                continue
            if group_id is not None and s.group_id != group_id:
                continue
            if course_id is not None and s.course_id != course_id:
                continue
            if teacher_user_id is not None:
                course = self._directory.get_course(s.course_id)
                if not course or course.teacher_id != teacher_user_id:
                    continue
            if semester is not None and s.semester != semester:
                continue
            if day_of_week is not None and s.day_of_week != day_of_week:
                continue
            rows.append(s)
        return self._sorted(rows)

    def course_ids_for_group(self, group_id: int) -> Set[int]:
        return {s.course_id for s in self._rows.values() if s.is_active and s.group_id == group_id}


class InMemorySessions:
    def __init__(self, clock: _Clock):
        self._clock = clock
        self.rows: Dict[int, Session] = {}
        self._ids = itertools.count(1)

    def _check_code(self, code: str, exclude_id: Optional[int] = None) -> None:
        if any(s.attendance_code == code and s.session_id != exclude_id for s in self.rows.values()):
            raise DuplicateKeyError("Duplicate entry", key="uq_sessions_attendance_code")

    def get_by_id(self, session_id: int) -> Optional[Session]:
        return self.rows.get(session_id)

    def get_by_code(self, code: str) -> Optional[Session]:
        return next((s for s in self.rows.values() if s.attendance_code == code), None)

    def create(self, new: NewSession) -> Session:
        self._check_code(new.attendance_code)
        now = self._clock()
        session = Session(session_id=next(self._ids), created_at=now, updated_at=now, **vars(new))
        self.rows[session.session_id] = session
        return session

    def update(self, *, session_id: int, changes: Mapping[str, Any]) -> Optional[Session]:
        current = self.rows.get(session_id)
        if not current:
            return None
        if "attendance_code" in changes:
            self._check_code(changes["attendance_code"], exclude_id=session_id)
        updated = replace(current, updated_at=self._clock(), **changes)
        self.rows[session_id] = updated
        return updated

    def delete(self, *, session_id: int) -> bool:
        return self.rows.pop(session_id, None) is not None

    @staticmethod
    def _newest_first(rows) -> List[Session]:
        return sorted(rows, key=lambda s: (s.start_time, s.session_id), reverse=True)

    def list_all(self) -> Sequence[Session]:
        return self._newest_first(self.rows.values())

    def list_by_creator(self, user_id: int) -> Sequence[Session]:
        return self._newest_first(s for s in self.rows.values() if s.created_by_id == user_id)

    def list_by_course(self, course_id: int) -> Sequence[Session]:
        return self._newest_first(s for s in self.rows.values() if s.course_id == course_id)

    def list_for_courses_between(
        self, *, course_ids: Sequence[int], start: datetime, end: datetime
    ) -> Sequence[Session]:
        rows = [s for s in self.rows.values() if s.course_id in course_ids and start <= s.start_time <= end]
        return sorted(rows, key=lambda s: (s.start_time, s.session_id))

    def list_upcoming_for_courses(self, *, course_ids: Sequence[int], now: datetime) -> Sequence[Session]:
        rows = [
            s
            for s in self.rows.values()
            if s.course_id in course_ids
            and (
                s.status == SessionStatus.ACTIVE
                or (s.status == SessionStatus.SCHEDULED and s.end_time > now)
            )
        ]
        return sorted(rows, key=lambda s: (s.start_time, s.session_id))

    def close_expired(self, now: datetime) -> int:
        count = 0
        for s in list(self.rows.values()):
            if s.status == SessionStatus.ACTIVE and s.end_time < now:
                self.rows[s.session_id] = replace(s, status=SessionStatus.COMPLETED, is_code_active=False)
                count += 1
        return count


class InMemoryAttendance:
    def __init__(self, sessions: InMemorySessions, clock: _Clock):
        self._sessions = sessions
        self._clock = clock
        self.rows: Dict[int, Attendance] = {}
        self._ids = itertools.count(1)

    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        return self.rows.get(attendance_id)

    def get_for_session_and_student(self, *, session_id: int, student_id: int) -> Optional[Attendance]:
        return next(
            (a for a in self.rows.values() if a.session_id == session_id and a.student_id == student_id),
            None,
        )

    def create(self, new: NewAttendance) -> Attendance:
        if self.get_for_session_and_student(session_id=new.session_id, student_id=new.student_id):
            raise DuplicateKeyError("Duplicate entry", key="uq_attendances_session_student")
        now = self._clock()
        record = Attendance(attendance_id=next(self._ids), created_at=now, updated_at=now, **vars(new))
        self.rows[record.attendance_id] = record
        return record

    def update(self, *, attendance_id: int, changes: Mapping[str, Any]) -> Optional[Attendance]:
        current = self.rows.get(attendance_id)
        if not current:
            return None
        updated = replace(current, updated_at=self._clock(), **changes)
        self.rows[attendance_id] = updated
        return updated

    def delete(self, *, attendance_id: int) -> bool:
        return self.rows.pop(attendance_id, None) is not None

    def list_by_session(self, session_id: int) -> Sequence[Attendance]:
        rows = [a for a in self.rows.values() if a.session_id == session_id]
        return sorted(rows, key=lambda a: (a.created_at, a.attendance_id))

    def _history(self, a: Attendance) -> StudentAttendance:
        session = self._sessions.get_by_id(a.session_id)
        return StudentAttendance(
            attendance=a,
            course_id=session.course_id,
            session_title=session.title,
            session_start_time=session.start_time,
        )

    def list_by_student(self, student_id: int) -> Sequence[StudentAttendance]:
        rows = [a for a in self.rows.values() if a.student_id == student_id]
        rows.sort(key=lambda a: (a.created_at, a.attendance_id), reverse=True)
        return [self._history(a) for a in rows]

    def list_by_student_and_course(self, *, student_id: int, course_id: int) -> Sequence[StudentAttendance]:
        items = [self._history(a) for a in self.rows.values() if a.student_id == student_id]
        items = [h for h in items if h.course_id == course_id]
        items.sort(key=lambda h: (h.session_start_time, h.attendance.attendance_id), reverse=True)
        return items


class InMemoryLeaveRequests:
    def __init__(self, clock: _Clock):
        self._clock = clock
        self.rows: Dict[int, LeaveRequest] = {}
        self._ids = itertools.count(1)

    def create(self, new: NewLeaveRequest) -> LeaveRequest:
        request = LeaveRequest(request_id=next(self._ids), created_at=self._clock(), **vars(new))
        self.rows[request.request_id] = request
        return request

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        return self.rows.get(request_id)

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        rows = [
            r
            for r in self.rows.values()
            if (status is None or r.status == status) and (user_id is None or r.user_id == user_id)
        ]
        rows.sort(key=lambda r: (r.created_at, r.request_id), reverse=True)
        return rows[:limit]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by_id: int,
        reviewed_at: datetime,
        review_note: Optional[str] = None,
    ) -> bool:
        current = self.rows.get(request_id)
        if not current or current.status != RequestStatus.PENDING:
            return False
        self.rows[request_id] = replace(
            current,
            status=status,
            reviewed_by_id=reviewed_by_id,
            reviewed_at=reviewed_at,
            review_note=review_note,
        )
        return True

    def delete(self, *, request_id: int) -> bool:
        return self.rows.pop(request_id, None) is not None


class SequentialCodes:
    """Deterministic code generator; ``repeat`` forces collisions."""

    def __init__(self, repeat: Optional[str] = None):
        self._n = itertools.count(1)
        self.repeat = repeat

    def __call__(self) -> str:
        if self.repeat is not None:
            return self.repeat
        return f"CODE{next(self._n):02d}"


@dataclass
class World:
    container: Container
    directory: InMemoryDirectory
    schedules_repo: InMemorySchedules
    sessions_repo: InMemorySessions
    attendance_repo: InMemoryAttendance
    leave_repo: InMemoryLeaveRequests
    codes: SequentialCodes

    admin: Principal
    teacher: Principal
    other_teacher: Principal
    student: Principal
    classmate: Principal
    outsider: Principal


ADMIN_USER = 1
TEACHER_USER = 2
OTHER_TEACHER_USER = 3
STUDENT_USER = 10
CLASSMATE_USER = 11
OUTSIDER_USER = 12


def build_world(*, admin_can_manage_sessions: bool = True, late_threshold_minutes: int = 15) -> World:
    clock = _Clock()
    directory = InMemoryDirectory()
    directory.groups[1] = Group(group_id=1, name="CS-1A")
    directory.groups[2] = Group(group_id=2, name="CS-1B")
    directory.teachers[1] = TeacherProfile(teacher_id=1, full_name="Ada Teacher", user_id=TEACHER_USER)
    directory.teachers[2] = TeacherProfile(teacher_id=2, full_name="Bo Teacher", user_id=OTHER_TEACHER_USER)
    directory.teachers[3] = TeacherProfile(teacher_id=3, full_name="Unlinked Teacher", user_id=None)
    directory.students[1] = StudentProfile(student_id=1, full_name="Student A", user_id=STUDENT_USER, group_id=1)
    directory.students[2] = StudentProfile(student_id=2, full_name="Student B", user_id=CLASSMATE_USER, group_id=1)
    directory.students[3] = StudentProfile(student_id=3, full_name="Student C", user_id=OUTSIDER_USER, group_id=2)
    directory.students[4] = StudentProfile(student_id=4, full_name="Student D", user_id=None, group_id=1)
    directory.courses[1] = Course(course_id=1, name="Programming I", code="CS101", teacher_id=TEACHER_USER)
    directory.courses[2] = Course(course_id=2, name="Calculus", code="MA110", teacher_id=OTHER_TEACHER_USER)

    schedules_repo = InMemorySchedules(directory, clock)
    sessions_repo = InMemorySessions(clock)
    attendance_repo = InMemoryAttendance(sessions_repo, clock)
    leave_repo = InMemoryLeaveRequests(clock)
    codes = SequentialCodes()

    container = assemble(
        directory_repo=directory,
        schedules_repo=schedules_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        leave_requests_repo=leave_repo,
        late_threshold_minutes=late_threshold_minutes,
        admin_can_manage_sessions=admin_can_manage_sessions,
        code_generator=codes,
    )

    return World(
        container=container,
        directory=directory,
        schedules_repo=schedules_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        codes=codes,
        admin=Principal(user_id=ADMIN_USER, roles=frozenset({Role.ADMIN})),
        teacher=Principal(user_id=TEACHER_USER, roles=frozenset({Role.TEACHER}), teacher_id=1),
        other_teacher=Principal(user_id=OTHER_TEACHER_USER, roles=frozenset({Role.TEACHER}), teacher_id=2),
        student=Principal(user_id=STUDENT_USER, roles=frozenset({Role.STUDENT}), student_id=1, group_id=1),
        classmate=Principal(user_id=CLASSMATE_USER, roles=frozenset({Role.STUDENT}), student_id=2, group_id=1),
        outsider=Principal(user_id=OUTSIDER_USER, roles=frozenset({Role.STUDENT}), student_id=3, group_id=2),
    )


@pytest.fixture
def world() -> World:
    return build_world()


@pytest.fixture
def world_factory():
    return build_world
