"""Approved student leave -> excused attendance for every affected session.

Sessions are found through the student's group schedule: every course the
group is actively scheduled for, every session of those courses starting
inside the leave window. Each session is written independently; a failure on
one is logged and reported and does not undo the others.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from ..attendance.repository import AttendanceRepository
from ..attendance.upsert import upsert_manual
from ..common.datetime_utils import day_window, now_local
from ..core.enums import AttendanceStatus
from ..directory.repository import DirectoryRepository
from ..schedules.repository import ScheduleRepository
from ..sessions.repository import SessionRepository
from .model import LeaveRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    request_id: int
    excused_session_ids: Tuple[int, ...] = ()
    failed_session_ids: Tuple[int, ...] = ()
    skipped_reason: Optional[str] = None

    @property
    def complete(self) -> bool:
        return not self.failed_session_ids


def leave_remarks(request: LeaveRequest) -> str:
    return f"Approved leave ({request.leave_type.value}): {request.reason}"


class LeaveReconciler:
    def __init__(
        self,
        directory: DirectoryRepository,
        schedules: ScheduleRepository,
        sessions: SessionRepository,
        attendance: AttendanceRepository,
    ):
        self._directory = directory
        self._schedules = schedules
        self._sessions = sessions
        self._attendance = attendance

    def _skip(self, request: LeaveRequest, reason: str) -> ReconciliationResult:
        logger.info("Leave request %s: nothing to reconcile (%s)", request.request_id, reason)
        return ReconciliationResult(request_id=request.request_id, skipped_reason=reason)

    def reconcile(
        self, request: LeaveRequest, *, reviewer_id: int, now: datetime | None = None
    ) -> ReconciliationResult:
        if request.student_id is None:
            return self._skip(request, "not a student request")

        profile = self._directory.get_student(request.student_id)
        if not profile or profile.group_id is None:
            return self._skip(request, "student has no group")
        if profile.user_id is None:
            return self._skip(request, "student profile is not linked to a user account")

        course_ids = sorted(self._schedules.course_ids_for_group(profile.group_id))
        if not course_ids:
            return self._skip(request, "group has no active schedules")

        start, end = day_window(request.start_date, request.end_date)
        sessions = self._sessions.list_for_courses_between(course_ids=course_ids, start=start, end=end)

        now = now or now_local()
        remarks = leave_remarks(request)
        excused: List[int] = []
        failed: List[int] = []
        for session in sessions:
            try:
                upsert_manual(
                    self._attendance,
                    session_id=session.session_id,
                    student_user_id=profile.user_id,
                    status=AttendanceStatus.EXCUSED,
                    marked_by_id=reviewer_id,
                    check_in_time=now,
                    remarks=remarks,
                )
            except Exception:
                logger.exception(
                    "Leave request %s: failed to excuse session %s", request.request_id, session.session_id
                )
                failed.append(session.session_id)
                continue
            excused.append(session.session_id)

        logger.info(
            "Leave request %s reconciled: %s session(s) excused, %s failed",
            request.request_id,
            len(excused),
            len(failed),
        )
        return ReconciliationResult(
            request_id=request.request_id,
            excused_session_ids=tuple(excused),
            failed_session_ids=tuple(failed),
        )
