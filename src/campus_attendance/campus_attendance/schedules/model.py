from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_SEMESTER_WEEKS
from ..core.enums import DayOfWeek, ScheduleType, TimeSlot


@dataclass(frozen=True)
class Schedule:
    """Recurring weekly meeting of one course for one group.

    Foreign keys are plain ids; nothing here caches the related course/group.
    """

    schedule_id: int
    course_id: int
    group_id: int
    semester: int
    day_of_week: DayOfWeek
    start_slot: TimeSlot
    duration: int
    schedule_type: ScheduleType
    room_number: str
    semester_weeks: int = DEFAULT_SEMESTER_WEEKS
    color: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewSchedule:
    """Values written on insert (after defaults are applied)."""

    course_id: int
    group_id: int
    semester: int
    semester_weeks: int
    day_of_week: DayOfWeek
    start_slot: TimeSlot
    duration: int
    schedule_type: ScheduleType
    room_number: str
    color: str
    is_active: bool = True
