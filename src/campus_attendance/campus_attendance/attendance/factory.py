from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, session_start: datetime, threshold_minutes: int) -> AttendanceStrategy:
        # exactly on the threshold still counts as present
        if now > session_start + timedelta(minutes=threshold_minutes):
            return LateStrategy()
        return NormalStrategy()
