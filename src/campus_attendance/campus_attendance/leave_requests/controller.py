from __future__ import annotations

from flask import Flask, jsonify, request

from ..auth.http import current_principal, json_body, login_required, roles_required
from ..common.serialization import to_jsonable
from ..common.validators import require_enum
from ..core.enums import RequestStatus, Role
from ..container import Container
from .dto import LeaveRequestInput, ReviewInput


def register(app: Flask, container: Container) -> None:
    service = container.leave_request_service

    @app.route("/leave-requests", methods=["POST"], endpoint="leave_requests_create")
    @roles_required(Role.STUDENT, Role.TEACHER)
    def leave_requests_create():
        data = LeaveRequestInput.from_payload(json_body())
        return jsonify(to_jsonable(service.create(data, principal=current_principal()))), 201

    @app.route("/leave-requests/my", methods=["GET"], endpoint="leave_requests_my")
    @login_required
    def leave_requests_my():
        return jsonify(to_jsonable(service.list_mine(current_principal())))

    @app.route("/leave-requests", methods=["GET"], endpoint="leave_requests_list")
    @roles_required(Role.ADMIN)
    def leave_requests_list():
        raw = request.args.get("status")
        status = require_enum(raw, RequestStatus, "Status") if raw else None
        return jsonify(to_jsonable(service.list_all(principal=current_principal(), status=status)))

    @app.route("/leave-requests/<int:request_id>/review", methods=["POST"], endpoint="leave_requests_review")
    @roles_required(Role.ADMIN)
    def leave_requests_review(request_id: int):
        data = ReviewInput.from_payload(json_body())
        outcome = service.review(request_id, data, principal=current_principal())
        return jsonify(to_jsonable(outcome))

    @app.route("/leave-requests/<int:request_id>", methods=["DELETE"], endpoint="leave_requests_delete")
    @login_required
    def leave_requests_delete(request_id: int):
        service.remove(request_id, principal=current_principal())
        return jsonify({"success": True, "message": "Leave request deleted"})
