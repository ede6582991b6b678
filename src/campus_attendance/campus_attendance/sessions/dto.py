from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ..common.validators import optional_str, require_datetime, require_int, require_max_length, require_non_empty
from ..core.constants import SESSION_TITLE_MAX_LENGTH
from ..core.exceptions import ValidationError


def _title(value: Any) -> str:
    title = require_non_empty(value, "Title")
    require_max_length(title, "Title", SESSION_TITLE_MAX_LENGTH)
    return title


def _description(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError("Description must be a string")
    return value


def require_time_window(start: datetime, end: datetime) -> None:
    if end <= start:
        raise ValidationError("End time must be after start time")


@dataclass(frozen=True)
class SessionInput:
    title: str
    course_id: int
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SessionInput":
        start = require_datetime(payload.get("start_time"), "Start time")
        end = require_datetime(payload.get("end_time"), "End time")
        require_time_window(start, end)
        return cls(
            title=_title(payload.get("title")),
            course_id=require_int(payload.get("course_id"), "Course", min_value=1),
            start_time=start,
            end_time=end,
            description=optional_str(payload, "description", "Description"),
        )


@dataclass(frozen=True)
class SessionUpdate:
    changes: Dict[str, Any] = field(default_factory=dict)

    _PARSERS = {
        "title": _title,
        "description": _description,
        "start_time": lambda v: require_datetime(v, "Start time"),
        "end_time": lambda v: require_datetime(v, "End time"),
    }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SessionUpdate":
        unknown = sorted(set(payload) - set(cls._PARSERS))
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        changes = {key: cls._PARSERS[key](value) for key, value in payload.items() if value is not None}
        if not changes:
            raise ValidationError("Nothing to update")
        return cls(changes=changes)
