from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveType, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    """Leave filed by a student or a teacher.

    Exactly one of ``student_id``/``teacher_id`` (directory profile ids) is set;
    ``user_id`` is the requester's identity-provider account.
    """

    request_id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: RequestStatus = RequestStatus.PENDING
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None
    reviewed_by_id: Optional[int] = None
    review_note: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_student_request(self) -> bool:
        return self.student_id is not None


@dataclass(frozen=True)
class NewLeaveRequest:
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None
