from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..common.validators import optional_str, require_date, require_enum, require_max_length, require_non_empty
from ..core.constants import REMARKS_MAX_LENGTH
from ..core.enums import LeaveType, RequestStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class LeaveRequestInput:
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "LeaveRequestInput":
        start = require_date(payload.get("start_date"), "Start date")
        end = require_date(payload.get("end_date"), "End date")
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return cls(
            leave_type=require_enum(payload.get("leave_type"), LeaveType, "Leave type"),
            start_date=start,
            end_date=end,
            reason=require_non_empty(payload.get("reason"), "Reason"),
        )


@dataclass(frozen=True)
class ReviewInput:
    status: RequestStatus
    review_note: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ReviewInput":
        status = require_enum(payload.get("status"), RequestStatus, "Status")
        if status == RequestStatus.PENDING:
            raise ValidationError("Status must be approved or rejected")
        note = optional_str(payload, "review_note", "Review note")
        note = (note or "").strip() or None
        require_max_length(note, "Review note", REMARKS_MAX_LENGTH)
        return cls(status=status, review_note=note)
