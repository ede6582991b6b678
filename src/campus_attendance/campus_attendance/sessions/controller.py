from __future__ import annotations

import io

from flask import Flask, jsonify, send_file

from ..auth.http import current_principal, json_body, login_required, roles_required
from ..common.serialization import to_jsonable
from ..core.enums import Role
from ..container import Container
from .dto import SessionInput, SessionUpdate


def _for_viewer(sessions, principal):
    """Students get session details without the attendance code."""

    data = to_jsonable(sessions)
    if principal.is_admin or principal.is_teacher:
        return data
    rows = data if isinstance(data, list) else [data]
    for row in rows:
        row.pop("attendance_code", None)
    return data


def register(app: Flask, container: Container) -> None:
    service = container.session_service

    @app.route("/sessions", methods=["POST"], endpoint="sessions_create")
    @roles_required(Role.TEACHER)
    def sessions_create():
        data = SessionInput.from_payload(json_body())
        return jsonify(to_jsonable(service.create(data, principal=current_principal()))), 201

    @app.route("/sessions", methods=["GET"], endpoint="sessions_list")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def sessions_list():
        return jsonify(to_jsonable(service.list_for(current_principal())))

    @app.route("/sessions/upcoming", methods=["GET"], endpoint="sessions_upcoming")
    @roles_required(Role.STUDENT)
    def sessions_upcoming():
        principal = current_principal()
        return jsonify(_for_viewer(service.find_upcoming_for_student(principal), principal))

    @app.route("/sessions/cleanup/expired", methods=["POST"], endpoint="sessions_cleanup_expired")
    @roles_required(Role.ADMIN)
    def sessions_cleanup_expired():
        count = service.close_expired()
        return jsonify({"success": True, "completed": count})

    @app.route("/sessions/course/<int:course_id>", methods=["GET"], endpoint="sessions_by_course")
    @login_required
    def sessions_by_course(course_id: int):
        return jsonify(_for_viewer(service.list_by_course(course_id), current_principal()))

    @app.route("/sessions/<int:session_id>", methods=["GET"], endpoint="sessions_get")
    @login_required
    def sessions_get(session_id: int):
        return jsonify(_for_viewer(service.get(session_id), current_principal()))

    @app.route("/sessions/<int:session_id>", methods=["PATCH"], endpoint="sessions_update")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def sessions_update(session_id: int):
        patch = SessionUpdate.from_payload(json_body())
        return jsonify(to_jsonable(service.update(session_id, patch, principal=current_principal())))

    @app.route("/sessions/<int:session_id>/activate", methods=["POST"], endpoint="sessions_activate")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def sessions_activate(session_id: int):
        return jsonify(to_jsonable(service.activate(session_id, principal=current_principal())))

    @app.route("/sessions/<int:session_id>/complete", methods=["POST"], endpoint="sessions_complete")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def sessions_complete(session_id: int):
        return jsonify(to_jsonable(service.complete(session_id, principal=current_principal())))

    @app.route("/sessions/<int:session_id>/cancel", methods=["POST"], endpoint="sessions_cancel")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def sessions_cancel(session_id: int):
        return jsonify(to_jsonable(service.cancel(session_id, principal=current_principal())))

    @app.route("/sessions/<int:session_id>/regenerate-code", methods=["POST"], endpoint="sessions_regenerate_code")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def sessions_regenerate_code(session_id: int):
        return jsonify(to_jsonable(service.regenerate_code(session_id, principal=current_principal())))

    @app.route("/sessions/<int:session_id>/qr", methods=["GET"], endpoint="sessions_qr")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def sessions_qr(session_id: int):
        png = service.qr_png(session_id, principal=current_principal())
        return send_file(io.BytesIO(png), mimetype="image/png")

    @app.route("/sessions/<int:session_id>", methods=["DELETE"], endpoint="sessions_delete")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def sessions_delete(session_id: int):
        service.remove(session_id, principal=current_principal())
        return jsonify({"success": True, "message": "Session deleted"})
