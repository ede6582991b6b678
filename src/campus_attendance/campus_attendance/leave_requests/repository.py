from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import LeaveRequest, NewLeaveRequest


class LeaveRequestRepository(Protocol):
    def create(self, new: NewLeaveRequest) -> LeaveRequest:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        """Newest first."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by_id: int,
        reviewed_at: datetime,
        review_note: Optional[str] = None,
    ) -> bool:
        """Set the outcome of a request that is still pending. False when it was not."""

        raise NotImplementedError

    def delete(self, *, request_id: int) -> bool:
        raise NotImplementedError
