from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from ..common.validators import optional_str, require_enum, require_int, require_max_length
from ..core.constants import BULK_MARK_MAX_ITEMS, REMARKS_MAX_LENGTH
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError

_CODE = re.compile(r"^[A-Za-z0-9]+$")


def _remarks(payload: Mapping[str, Any]) -> Optional[str]:
    return require_max_length(optional_str(payload, "remarks", "Remarks"), "Remarks", REMARKS_MAX_LENGTH)


@dataclass(frozen=True)
class CheckInInput:
    code: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CheckInInput":
        code = payload.get("code")
        if not isinstance(code, str) or not code.strip():
            raise ValidationError("Attendance code is required")
        code = code.strip()
        if not 4 <= len(code) <= 8:
            raise ValidationError("Attendance code must be between 4 and 8 characters")
        if not _CODE.match(code):
            raise ValidationError("Attendance code can only contain letters and numbers")
        return cls(code=code)


@dataclass(frozen=True)
class MarkItem:
    """``student_id`` here is the directory profile id."""

    student_id: int
    status: AttendanceStatus
    remarks: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MarkItem":
        if not isinstance(payload, Mapping):
            raise ValidationError("Each attendance item must be an object")
        return cls(
            student_id=require_int(payload.get("student_id"), "Student", min_value=1),
            status=require_enum(payload.get("status"), AttendanceStatus, "Status"),
            remarks=_remarks(payload),
        )


@dataclass(frozen=True)
class MarkInput:
    session_id: int
    item: MarkItem

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MarkInput":
        return cls(
            session_id=require_int(payload.get("session_id"), "Session", min_value=1),
            item=MarkItem.from_payload(payload),
        )


@dataclass(frozen=True)
class BulkMarkInput:
    session_id: int
    items: Tuple[MarkItem, ...]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BulkMarkInput":
        raw = payload.get("attendances")
        if not isinstance(raw, list) or not raw:
            raise ValidationError("At least one attendance record is required")
        if len(raw) > BULK_MARK_MAX_ITEMS:
            raise ValidationError(f"Cannot mark more than {BULK_MARK_MAX_ITEMS} attendance records at once")
        return cls(
            session_id=require_int(payload.get("session_id"), "Session", min_value=1),
            items=tuple(MarkItem.from_payload(item) for item in raw),
        )


@dataclass(frozen=True)
class AttendanceUpdate:
    changes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AttendanceUpdate":
        unknown = sorted(set(payload) - {"status", "remarks"})
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        changes: Dict[str, Any] = {}
        if payload.get("status") is not None:
            changes["status"] = require_enum(payload["status"], AttendanceStatus, "Status")
        if payload.get("remarks") is not None:
            changes["remarks"] = _remarks(payload)
        if not changes:
            raise ValidationError("Nothing to update")
        return cls(changes=changes)
