from __future__ import annotations

from flask import Flask, jsonify

from ..auth.http import current_principal, json_body, login_required, query_int, roles_required
from ..common.serialization import to_jsonable
from ..core.enums import Role
from ..container import Container
from .dto import AttendanceUpdate, BulkMarkInput, CheckInInput, MarkInput


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/attendances/check-in", methods=["POST"], endpoint="attendances_check_in")
    @roles_required(Role.STUDENT)
    def attendances_check_in():
        data = CheckInInput.from_payload(json_body())
        record = service.check_in(data, principal=current_principal())
        return jsonify(to_jsonable(record)), 201

    @app.route("/attendances/mark", methods=["POST"], endpoint="attendances_mark")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def attendances_mark():
        data = MarkInput.from_payload(json_body())
        return jsonify(to_jsonable(service.mark(data, principal=current_principal())))

    @app.route("/attendances/bulk-mark", methods=["POST"], endpoint="attendances_bulk_mark")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def attendances_bulk_mark():
        data = BulkMarkInput.from_payload(json_body())
        return jsonify(to_jsonable(service.bulk_mark(data, principal=current_principal())))

    @app.route("/attendances/session/<int:session_id>", methods=["GET"], endpoint="attendances_by_session")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def attendances_by_session(session_id: int):
        return jsonify(to_jsonable(service.list_by_session(session_id)))

    @app.route(
        "/attendances/session/<int:session_id>/summary", methods=["GET"], endpoint="attendances_session_summary"
    )
    @roles_required(Role.ADMIN, Role.TEACHER)
    def attendances_session_summary(session_id: int):
        return jsonify(to_jsonable(service.session_summary(session_id)))

    @app.route("/attendances/my", methods=["GET"], endpoint="attendances_my")
    @login_required
    def attendances_my():
        return jsonify(to_jsonable(service.list_mine(current_principal(), query_int("course_id"))))

    @app.route("/attendances/student/<int:student_user_id>", methods=["GET"], endpoint="attendances_by_student")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def attendances_by_student(student_user_id: int):
        course_id = query_int("course_id")
        if course_id is not None:
            return jsonify(to_jsonable(service.list_by_student_and_course(student_user_id, course_id)))
        return jsonify(to_jsonable(service.list_by_student(student_user_id)))

    @app.route("/attendances/<int:attendance_id>", methods=["PATCH"], endpoint="attendances_update")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def attendances_update(attendance_id: int):
        patch = AttendanceUpdate.from_payload(json_body())
        return jsonify(to_jsonable(service.update(attendance_id, patch, principal=current_principal())))

    @app.route("/attendances/<int:attendance_id>", methods=["DELETE"], endpoint="attendances_delete")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def attendances_delete(attendance_id: int):
        service.remove(attendance_id, principal=current_principal())
        return jsonify({"success": True, "message": "Attendance record deleted"})
