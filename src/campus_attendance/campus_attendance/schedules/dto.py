from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..common.validators import (
    require_bool,
    require_enum,
    require_hex_color,
    require_int,
    require_max_length,
    require_non_empty,
)
from ..core.constants import MAX_SCHEDULE_DURATION, MAX_SEMESTER_WEEKS, ROOM_NUMBER_MAX_LENGTH, SEMESTERS
from ..core.enums import DayOfWeek, ScheduleType, TimeSlot
from ..core.exceptions import ValidationError

# Fields whose change requires the overlap checks to run again.
PLACEMENT_FIELDS = ("course_id", "group_id", "semester", "day_of_week", "start_slot", "duration")


def _semester(value: Any) -> int:
    return require_int(value, "Semester", min_value=min(SEMESTERS), max_value=max(SEMESTERS))


def _weeks(value: Any) -> int:
    return require_int(value, "Semester weeks", min_value=1, max_value=MAX_SEMESTER_WEEKS)


def _duration(value: Any) -> int:
    return require_int(value, "Duration", min_value=1, max_value=MAX_SCHEDULE_DURATION)


def _room(value: Any) -> str:
    room = require_non_empty(value, "Room number")
    require_max_length(room, "Room number", ROOM_NUMBER_MAX_LENGTH)
    return room


@dataclass(frozen=True)
class ScheduleInput:
    course_id: int
    group_id: int
    semester: int
    day_of_week: DayOfWeek
    start_slot: TimeSlot
    duration: int
    schedule_type: ScheduleType
    room_number: str
    semester_weeks: Optional[int] = None
    color: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ScheduleInput":
        weeks = payload.get("semester_weeks")
        color = payload.get("color")
        return cls(
            course_id=require_int(payload.get("course_id"), "Course", min_value=1),
            group_id=require_int(payload.get("group_id"), "Group", min_value=1),
            semester=_semester(payload.get("semester")),
            day_of_week=require_enum(payload.get("day_of_week"), DayOfWeek, "Day of week"),
            start_slot=require_enum(payload.get("start_slot"), TimeSlot, "Start slot"),
            duration=_duration(payload.get("duration")),
            schedule_type=require_enum(payload.get("type"), ScheduleType, "Type"),
            room_number=_room(payload.get("room_number")),
            semester_weeks=_weeks(weeks) if weeks is not None else None,
            color=require_hex_color(color, "Color") if color is not None else None,
        )


@dataclass(frozen=True)
class ScheduleUpdate:
    """Partial update: only keys present in ``changes`` are applied."""

    changes: Dict[str, Any] = field(default_factory=dict)

    _PARSERS = {
        "course_id": lambda v: require_int(v, "Course", min_value=1),
        "group_id": lambda v: require_int(v, "Group", min_value=1),
        "semester": _semester,
        "semester_weeks": _weeks,
        "day_of_week": lambda v: require_enum(v, DayOfWeek, "Day of week"),
        "start_slot": lambda v: require_enum(v, TimeSlot, "Start slot"),
        "duration": _duration,
        "schedule_type": lambda v: require_enum(v, ScheduleType, "Type"),
        "room_number": _room,
        "color": lambda v: require_hex_color(v, "Color"),
        "is_active": lambda v: require_bool(v, "Active flag"),
    }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ScheduleUpdate":
        data = dict(payload)
        if "type" in data:
            data["schedule_type"] = data.pop("type")

        unknown = sorted(set(data) - set(cls._PARSERS))
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        changes = {key: cls._PARSERS[key](value) for key, value in data.items() if value is not None}
        if not changes:
            raise ValidationError("Nothing to update")
        return cls(changes=changes)
