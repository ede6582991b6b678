from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SessionStatus


@dataclass(frozen=True)
class Session:
    """A dated class meeting of one course, carrying its attendance code."""

    session_id: int
    title: str
    course_id: int
    created_by_id: int
    start_time: datetime
    end_time: datetime
    attendance_code: str
    status: SessionStatus = SessionStatus.SCHEDULED
    is_code_active: bool = True
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def overlaps(self, start: datetime, end: datetime) -> bool:
        # half-open [start, end)
        return self.start_time < end and start < self.end_time

    def contains(self, moment: datetime) -> bool:
        return self.start_time <= moment <= self.end_time

    @property
    def is_finished(self) -> bool:
        return self.status in (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


@dataclass(frozen=True)
class NewSession:
    title: str
    course_id: int
    created_by_id: int
    start_time: datetime
    end_time: datetime
    attendance_code: str
    description: Optional[str] = None
