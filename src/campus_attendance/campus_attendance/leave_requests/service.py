from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Sequence

from ..auth.principal import Principal
from ..common.datetime_utils import now_local
from ..core.enums import RequestStatus
from ..core.exceptions import AuthorizationError, NotFoundError, PreconditionError, ValidationError
from ..directory.repository import DirectoryRepository
from .dto import LeaveRequestInput, ReviewInput
from .model import LeaveRequest, NewLeaveRequest
from .reconciler import LeaveReconciler, ReconciliationResult
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    request: LeaveRequest
    reconciliation: Optional[ReconciliationResult] = None


class LeaveRequestService:
    def __init__(
        self,
        requests: LeaveRequestRepository,
        directory: DirectoryRepository,
        reconciler: LeaveReconciler,
    ):
        self._requests = requests
        self._directory = directory
        self._reconciler = reconciler

    def _requester_profile(self, principal: Principal) -> Dict[str, int]:
        """Resolve which directory profile the request is filed under (student first)."""

        if principal.is_student:
            student_id = principal.student_id
            if student_id is None:
                profile = self._directory.get_student_by_user(principal.user_id)
                student_id = profile.student_id if profile else None
            if student_id is None:
                raise ValidationError("No student profile is linked to this account")
            return dict(student_id=student_id)

        if principal.is_teacher:
            teacher_id = principal.teacher_id
            if teacher_id is None:
                profile = self._directory.get_teacher_by_user(principal.user_id)
                teacher_id = profile.teacher_id if profile else None
            if teacher_id is None:
                raise ValidationError("No teacher profile is linked to this account")
            return dict(teacher_id=teacher_id)

        raise AuthorizationError("Only students and teachers can submit leave requests")

    def create(self, data: LeaveRequestInput, *, principal: Principal) -> LeaveRequest:
        owner = self._requester_profile(principal)
        request = self._requests.create(
            NewLeaveRequest(
                user_id=principal.user_id,
                leave_type=data.leave_type,
                start_date=data.start_date,
                end_date=data.end_date,
                reason=data.reason,
                **owner,
            )
        )
        logger.info(
            "Leave request %s filed by user %s (%s, %s..%s)",
            request.request_id,
            principal.user_id,
            request.leave_type.value,
            request.start_date,
            request.end_date,
        )
        return request

    def get(self, request_id: int) -> LeaveRequest:
        request = self._requests.get_by_id(int(request_id))
        if not request:
            raise NotFoundError("Leave request not found")
        return request

    def list_mine(self, principal: Principal) -> Sequence[LeaveRequest]:
        return self._requests.list_requests(user_id=principal.user_id)

    def list_all(self, *, principal: Principal, status: Optional[RequestStatus] = None) -> Sequence[LeaveRequest]:
        if not principal.is_admin:
            raise AuthorizationError("Only administrators can list all leave requests")
        return self._requests.list_requests(status=status)

    def review(
        self,
        request_id: int,
        data: ReviewInput,
        *,
        principal: Principal,
        now: datetime | None = None,
    ) -> ReviewOutcome:
        """Approve or reject a pending request.

        Approving a student's request excuses the student from every affected
        session; the reconciliation report is returned alongside the request.
        """

        if not principal.is_admin:
            raise AuthorizationError("Only administrators can review leave requests")

        now = now or now_local()
        request = self.get(request_id)
        if request.user_id == principal.user_id:
            raise AuthorizationError("You cannot review your own leave request")
        if request.status != RequestStatus.PENDING:
            raise PreconditionError(f"Leave request has already been {request.status.value}")

        decided = self._requests.decide(
            request_id=request.request_id,
            status=data.status,
            reviewed_by_id=principal.user_id,
            reviewed_at=now,
            review_note=data.review_note,
        )
        if not decided:
            # someone else reviewed it in between
            raise PreconditionError("Leave request is no longer pending")

        reviewed = self.get(request.request_id)
        logger.info("Leave request %s %s by user %s", reviewed.request_id, reviewed.status.value, principal.user_id)

        reconciliation = None
        if reviewed.status == RequestStatus.APPROVED and reviewed.is_student_request:
            reconciliation = self._reconciler.reconcile(reviewed, reviewer_id=principal.user_id, now=now)
        return ReviewOutcome(request=reviewed, reconciliation=reconciliation)

    def remove(self, request_id: int, *, principal: Principal) -> None:
        request = self.get(request_id)
        if not principal.is_admin:
            if request.user_id != principal.user_id:
                raise AuthorizationError("You can only delete your own leave requests")
            if request.status != RequestStatus.PENDING:
                raise PreconditionError("Cannot delete a reviewed leave request")

        if not self._requests.delete(request_id=request.request_id):
            raise NotFoundError("Leave request not found")
        logger.info("Leave request %s deleted by user %s", request.request_id, principal.user_id)
