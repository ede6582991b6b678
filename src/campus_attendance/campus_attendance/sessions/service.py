from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Optional, Sequence

import qrcode

from ..auth.principal import Principal
from ..common.datetime_utils import format_local, now_local
from ..core.constants import ATTENDANCE_CODE_ATTEMPTS
from ..core.enums import SessionStatus
from ..core.exceptions import (
    AuthorizationError,
    DuplicateAttendanceCode,
    DuplicateKeyError,
    DuplicateTitle,
    InvalidCode,
    NotCourseOwner,
    NotFoundError,
    OutsideSessionWindow,
    PreconditionError,
    SessionNotFound,
    TimeOverlap,
)
from ..directory.repository import DirectoryRepository
from ..schedules.service import ScheduleService
from .codes import CodeGenerator, generate_attendance_code, normalize_code
from .dto import SessionInput, SessionUpdate, require_time_window
from .model import NewSession, Session
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionService:
    """Dated class sessions: creation rules, the status machine and attendance codes."""

    def __init__(
        self,
        sessions: SessionRepository,
        directory: DirectoryRepository,
        schedules: ScheduleService,
        *,
        code_generator: CodeGenerator | None = None,
        admin_can_manage: bool = True,
    ):
        self._sessions = sessions
        self._directory = directory
        self._schedules = schedules
        self._generate_code = code_generator or generate_attendance_code
        self._admin_can_manage = bool(admin_can_manage)

    # -- helpers --------------------------------------------------------------------

    def _get(self, session_id: int) -> Session:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise SessionNotFound("Session not found")
        return session

    def is_owner(self, session: Session, principal: Principal) -> bool:
        """Creator of the session or the course's current teacher."""

        if session.created_by_id == principal.user_id:
            return True
        course = self._directory.get_course(session.course_id)
        return bool(course and course.teacher_id == principal.user_id)

    def _require_manage(self, session: Session, principal: Principal) -> None:
        if self.is_owner(session, principal):
            return
        if principal.is_admin and self._admin_can_manage:
            return
        raise AuthorizationError("Only the session creator or the course teacher can manage this session")

    @staticmethod
    def _check_title(existing: Sequence[Session], title: str, exclude_id: Optional[int] = None) -> None:
        wanted = title.strip()
        for s in existing:
            if s.session_id != exclude_id and s.title.strip() == wanted:
                raise DuplicateTitle(f'A session titled "{wanted}" already exists for this course')

    @staticmethod
    def _check_overlap(
        existing: Sequence[Session], start: datetime, end: datetime, exclude_id: Optional[int] = None
    ) -> None:
        for s in existing:
            if s.session_id != exclude_id and s.overlaps(start, end):
                raise TimeOverlap(
                    f'Session time overlaps with "{s.title}" '
                    f"({format_local(s.start_time)} - {format_local(s.end_time)})"
                )

    def _set_status(self, session: Session, status: SessionStatus, *, code_active: bool) -> Session:
        updated = self._sessions.update(
            session_id=session.session_id,
            changes={"status": status, "is_code_active": code_active},
        )
        if not updated:
            raise SessionNotFound("Session not found")
        logger.info("Session %s: %s -> %s", session.session_id, session.status.value, status.value)
        return updated

    # -- commands -------------------------------------------------------------------

    def create(self, data: SessionInput, *, principal: Principal) -> Session:
        course = self._directory.get_course(data.course_id)
        if not course:
            raise NotFoundError("Course not found")
        if not principal.is_teacher or course.teacher_id != principal.user_id:
            raise NotCourseOwner("Only the course teacher can create sessions")

        existing = self._sessions.list_by_course(course.course_id)
        self._check_title(existing, data.title)
        self._check_overlap(existing, data.start_time, data.end_time)

        for attempt in range(1, ATTENDANCE_CODE_ATTEMPTS + 1):
            new = NewSession(
                title=data.title.strip(),
                description=data.description,
                course_id=course.course_id,
                created_by_id=principal.user_id,
                start_time=data.start_time,
                end_time=data.end_time,
                attendance_code=self._generate_code(),
            )
            try:
                session = self._sessions.create(new)
            except DuplicateKeyError:
                logger.warning("Attendance code collision on create (attempt %s)", attempt)
                continue
            logger.info(
                "Session %s created for course %s by user %s", session.session_id, course.course_id, principal.user_id
            )
            return session

        raise DuplicateAttendanceCode("Could not generate a unique attendance code, please try again")

    def update(self, session_id: int, patch: SessionUpdate, *, principal: Principal) -> Session:
        current = self._get(session_id)
        self._require_manage(current, principal)

        changes = dict(patch.changes)
        if "title" in changes:
            changes["title"] = changes["title"].strip()

        start = changes.get("start_time", current.start_time)
        end = changes.get("end_time", current.end_time)
        require_time_window(start, end)

        existing = self._sessions.list_by_course(current.course_id)
        if changes.get("title", current.title) != current.title:
            self._check_title(existing, changes["title"], exclude_id=current.session_id)
        if start != current.start_time or end != current.end_time:
            self._check_overlap(existing, start, end, exclude_id=current.session_id)

        updated = self._sessions.update(session_id=current.session_id, changes=changes)
        if not updated:
            raise SessionNotFound("Session not found")
        logger.info("Session %s updated: %s", current.session_id, sorted(changes))
        return updated

    def activate(self, session_id: int, *, principal: Principal, now: datetime | None = None) -> Session:
        now = now or now_local()
        session = self._get(session_id)
        self._require_manage(session, principal)

        if session.is_finished:
            raise PreconditionError(f"Session is already {session.status.value}")
        if not session.contains(now):
            raise OutsideSessionWindow(
                f"Session can only be activated between {format_local(session.start_time)} "
                f"and {format_local(session.end_time)}. Current time: {format_local(now)}"
            )
        return self._set_status(session, SessionStatus.ACTIVE, code_active=True)

    def complete(self, session_id: int, *, principal: Principal) -> Session:
        session = self._get(session_id)
        self._require_manage(session, principal)

        if session.status == SessionStatus.CANCELLED:
            raise PreconditionError("Cancelled sessions cannot be completed")
        if session.status == SessionStatus.COMPLETED:
            return session
        return self._set_status(session, SessionStatus.COMPLETED, code_active=False)

    def cancel(self, session_id: int, *, principal: Principal) -> Session:
        session = self._get(session_id)
        self._require_manage(session, principal)

        if session.status == SessionStatus.COMPLETED:
            raise PreconditionError("Completed sessions cannot be cancelled")
        if session.status == SessionStatus.CANCELLED:
            return session
        return self._set_status(session, SessionStatus.CANCELLED, code_active=False)

    def regenerate_code(self, session_id: int, *, principal: Principal) -> Session:
        session = self._get(session_id)
        self._require_manage(session, principal)

        for attempt in range(1, ATTENDANCE_CODE_ATTEMPTS + 1):
            try:
                updated = self._sessions.update(
                    session_id=session.session_id,
                    changes={"attendance_code": self._generate_code()},
                )
            except DuplicateKeyError:
                logger.warning("Attendance code collision on regenerate (attempt %s)", attempt)
                continue
            if not updated:
                raise SessionNotFound("Session not found")
            logger.info("Session %s: attendance code regenerated", session.session_id)
            return updated

        raise DuplicateAttendanceCode("Could not generate a unique attendance code, please try again")

    def remove(self, session_id: int, *, principal: Principal) -> None:
        session = self._get(session_id)
        self._require_manage(session, principal)
        if not self._sessions.delete(session_id=session.session_id):
            raise SessionNotFound("Session not found")
        logger.info("Session %s deleted by user %s", session.session_id, principal.user_id)

    def close_expired(self, now: datetime | None = None) -> int:
        """Complete active sessions whose end time has passed. Safe to call repeatedly."""

        count = self._sessions.close_expired(now or now_local())
        if count:
            logger.info("Auto-completed %s expired session(s)", count)
        return count

    # -- queries --------------------------------------------------------------------

    def get(self, session_id: int, *, now: datetime | None = None) -> Session:
        self.close_expired(now)
        return self._get(session_id)

    def find_by_code(self, code: str, *, now: datetime | None = None) -> Session:
        self.close_expired(now)
        session = self._sessions.get_by_code(normalize_code(code))
        if not session:
            raise InvalidCode("Invalid attendance code")
        return session

    def list_for(self, principal: Principal, *, now: datetime | None = None) -> Sequence[Session]:
        self.close_expired(now)
        if principal.is_admin:
            return self._sessions.list_all()
        return self._sessions.list_by_creator(principal.user_id)

    def list_by_course(self, course_id: int, *, now: datetime | None = None) -> Sequence[Session]:
        self.close_expired(now)
        return self._sessions.list_by_course(int(course_id))

    def find_upcoming_for_student(self, principal: Principal, *, now: datetime | None = None) -> Sequence[Session]:
        now = now or now_local()
        self.close_expired(now)

        group_id = self._schedules.student_group_id(principal)
        if group_id is None:
            return []
        course_ids = sorted(self._schedules.course_ids_for_group(group_id))
        if not course_ids:
            return []
        return self._sessions.list_upcoming_for_courses(course_ids=course_ids, now=now)

    def qr_png(self, session_id: int, *, principal: Principal) -> bytes:
        """PNG QR code holding the attendance code, for projecting in class."""

        session = self._get(session_id)
        self._require_manage(session, principal)

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(session.attendance_code)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
