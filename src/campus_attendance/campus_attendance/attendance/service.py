from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from ..auth.principal import Principal
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_LATE_THRESHOLD_MINUTES
from ..core.enums import AttendanceStatus, CheckInMethod, SessionStatus
from ..core.exceptions import (
    AlreadyCheckedIn,
    CodeInactive,
    DuplicateKeyError,
    NotCourseOwner,
    NotFoundError,
    NotScheduled,
    SessionNotActive,
    ValidationError,
)
from ..directory.repository import DirectoryRepository
from ..schedules.service import ScheduleService
from ..sessions.model import Session
from ..sessions.service import SessionService
from .dto import AttendanceUpdate, BulkMarkInput, CheckInInput, MarkInput
from .factory import AttendanceStrategyFactory
from .model import Attendance, AttendanceSummary, NewAttendance, StudentAttendance
from .repository import AttendanceRepository
from .upsert import upsert_manual

logger = logging.getLogger(__name__)


class AttendanceService:
    """Per-(session, student) attendance: self check-in and teacher marking."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: SessionService,
        schedules: ScheduleService,
        directory: DirectoryRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
    ):
        self._attendance = attendance
        self._sessions = sessions
        self._schedules = schedules
        self._directory = directory
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._late_threshold = int(late_threshold_minutes)

    # -- self check-in --------------------------------------------------------------

    def check_in(self, data: CheckInInput, *, principal: Principal, now: datetime | None = None) -> Attendance:
        now = now or now_local()

        session = self._sessions.find_by_code(data.code, now=now)
        if not session.is_code_active:
            raise CodeInactive("Attendance code is no longer active")
        if session.status != SessionStatus.ACTIVE:
            raise SessionNotActive("Session is not currently active")

        group_id = self._schedules.student_group_id(principal)
        if group_id is None or not self._schedules.is_scheduled(group_id=group_id, course_id=session.course_id):
            raise NotScheduled("Your group is not scheduled for this course")

        existing = self._attendance.get_for_session_and_student(
            session_id=session.session_id, student_id=principal.user_id
        )
        if existing:
            raise AlreadyCheckedIn("You have already checked in to this session")

        strategy = self._factory.for_checkin(
            now=now, session_start=session.start_time, threshold_minutes=self._late_threshold
        )
        decision = strategy.decide_checkin(
            now=now, session_start=session.start_time, threshold_minutes=self._late_threshold
        )

        try:
            record = self._attendance.create(
                NewAttendance(
                    session_id=session.session_id,
                    student_id=principal.user_id,
                    status=decision.status,
                    check_in_method=CheckInMethod.CODE,
                    check_in_time=now,
                )
            )
        except DuplicateKeyError as e:
            raise AlreadyCheckedIn("You have already checked in to this session") from e

        logger.info(
            "Check-in: session=%s student=%s status=%s",
            session.session_id,
            principal.user_id,
            decision.status.value,
        )
        return record

    # -- manual marking -------------------------------------------------------------

    def _require_course_teacher(self, session: Session, principal: Principal) -> None:
        if principal.is_admin:
            return
        course = self._directory.get_course(session.course_id)
        if not course or course.teacher_id != principal.user_id:
            raise NotCourseOwner("You can only mark attendance for your own courses")

    def mark(self, data: MarkInput, *, principal: Principal, now: datetime | None = None) -> Attendance:
        now = now or now_local()
        session = self._sessions.get(data.session_id, now=now)
        self._require_course_teacher(session, principal)

        profile = self._directory.get_student(data.item.student_id)
        if not profile:
            raise NotFoundError("Student not found")
        if profile.user_id is None:
            raise ValidationError("Student profile is not linked to a user account")

        record = upsert_manual(
            self._attendance,
            session_id=session.session_id,
            student_user_id=profile.user_id,
            status=data.item.status,
            marked_by_id=principal.user_id,
            remarks=data.item.remarks,
            check_in_time=now,
        )
        logger.info(
            "Marked session=%s student=%s status=%s by user %s",
            session.session_id,
            profile.user_id,
            record.status.value,
            principal.user_id,
        )
        return record

    def bulk_mark(
        self, data: BulkMarkInput, *, principal: Principal, now: datetime | None = None
    ) -> List[Attendance]:
        now = now or now_local()
        session = self._sessions.get(data.session_id, now=now)
        self._require_course_teacher(session, principal)

        user_ids = self._directory.map_student_user_ids([item.student_id for item in data.items])

        results: List[Attendance] = []
        unknown = unlinked = 0
        for item in data.items:
            # skipped entries never fail the batch
            if item.student_id not in user_ids:
                unknown += 1
                continue
            user_id = user_ids[item.student_id]
            if user_id is None:
                unlinked += 1
                continue
            results.append(
                upsert_manual(
                    self._attendance,
                    session_id=session.session_id,
                    student_user_id=user_id,
                    status=item.status,
                    marked_by_id=principal.user_id,
                    remarks=item.remarks,
                    check_in_time=now,
                )
            )

        logger.info(
            "Bulk marked session=%s: %s written, skipped %s unknown and %s unlinked profile(s)",
            session.session_id,
            len(results),
            unknown,
            unlinked,
        )
        return results

    def update(self, attendance_id: int, patch: AttendanceUpdate, *, principal: Principal) -> Attendance:
        current = self._attendance.get_by_id(int(attendance_id))
        if not current:
            raise NotFoundError("Attendance record not found")
        self._require_course_teacher(self._sessions.get(current.session_id), principal)

        changes = dict(patch.changes)
        changes["marked_by_id"] = principal.user_id
        updated = self._attendance.update(attendance_id=current.attendance_id, changes=changes)
        if not updated:
            raise NotFoundError("Attendance record not found")
        return updated

    def remove(self, attendance_id: int, *, principal: Principal) -> None:
        current = self._attendance.get_by_id(int(attendance_id))
        if not current:
            raise NotFoundError("Attendance record not found")
        self._require_course_teacher(self._sessions.get(current.session_id), principal)

        if not self._attendance.delete(attendance_id=current.attendance_id):
            raise NotFoundError("Attendance record not found")
        logger.info("Attendance %s deleted by user %s", current.attendance_id, principal.user_id)

    # -- queries --------------------------------------------------------------------

    def list_by_session(self, session_id: int) -> Sequence[Attendance]:
        session = self._sessions.get(session_id)
        return self._attendance.list_by_session(session.session_id)

    def session_summary(self, session_id: int) -> AttendanceSummary:
        rows = self.list_by_session(session_id)
        counts = Counter(r.status for r in rows)
        return AttendanceSummary(
            session_id=int(session_id),
            total=len(rows),
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            excused=counts[AttendanceStatus.EXCUSED],
        )

    def list_by_student(self, student_user_id: int) -> Sequence[StudentAttendance]:
        return self._attendance.list_by_student(int(student_user_id))

    def list_by_student_and_course(self, student_user_id: int, course_id: int) -> Sequence[StudentAttendance]:
        return self._attendance.list_by_student_and_course(student_id=int(student_user_id), course_id=int(course_id))

    def list_mine(self, principal: Principal, course_id: Optional[int] = None) -> Sequence[StudentAttendance]:
        if course_id is not None:
            return self.list_by_student_and_course(principal.user_id, course_id)
        return self.list_by_student(principal.user_id)
