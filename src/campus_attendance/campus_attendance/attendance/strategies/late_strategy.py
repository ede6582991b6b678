from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Check-in after the late threshold."""

    def decide_checkin(self, *, now: datetime, session_start: datetime, threshold_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE)
