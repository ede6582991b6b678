from __future__ import annotations

from flask import Flask, jsonify

from ..auth.http import current_principal, json_body, login_required, query_int, roles_required
from ..common.serialization import to_jsonable
from ..core.enums import Role
from ..container import Container
from . import timegrid
from .dto import ScheduleInput, ScheduleUpdate


def register(app: Flask, container: Container) -> None:
    service = container.schedule_service

    @app.route("/schedules", methods=["POST"], endpoint="schedules_create")
    @roles_required(Role.ADMIN)
    def schedules_create():
        data = ScheduleInput.from_payload(json_body())
        schedule = service.create(data, principal=current_principal())
        return jsonify(to_jsonable(schedule)), 201

    @app.route("/schedules", methods=["GET"], endpoint="schedules_list")
    @login_required
    def schedules_list():
        return jsonify(to_jsonable(service.list_all()))

    @app.route("/schedules/time-slots", methods=["GET"], endpoint="schedules_time_slots")
    @login_required
    def schedules_time_slots():
        slots = []
        for index, slot in enumerate(timegrid.ordered_slots()):
            start, end = timegrid.slot_bounds(slot)
            slots.append(
                {
                    "value": slot.value,
                    "index": index,
                    "start": start.strftime("%H:%M"),
                    "end": end.strftime("%H:%M"),
                    "remaining_in_block": timegrid.remaining_slots_in_block(slot),
                }
            )
        return jsonify(slots)

    @app.route("/schedules/days", methods=["GET"], endpoint="schedules_days")
    @login_required
    def schedules_days():
        return jsonify([d.value for d in timegrid.days_of_week()])

    @app.route("/schedules/my", methods=["GET"], endpoint="schedules_my")
    @roles_required(Role.STUDENT)
    def schedules_my():
        return jsonify(to_jsonable(service.list_mine(current_principal(), query_int("semester"))))

    @app.route("/schedules/my-teaching", methods=["GET"], endpoint="schedules_my_teaching")
    @roles_required(Role.TEACHER)
    def schedules_my_teaching():
        return jsonify(to_jsonable(service.list_my_teaching(current_principal(), query_int("semester"))))

    @app.route("/schedules/by-group/<int:group_id>", methods=["GET"], endpoint="schedules_by_group")
    @login_required
    def schedules_by_group(group_id: int):
        return jsonify(to_jsonable(service.list_by_group(group_id, query_int("semester"))))

    @app.route(
        "/schedules/by-group/<int:group_id>/formatted", methods=["GET"], endpoint="schedules_by_group_formatted"
    )
    @login_required
    def schedules_by_group_formatted(group_id: int):
        return jsonify(to_jsonable(service.list_by_group_formatted(group_id, query_int("semester"))))

    @app.route("/schedules/by-course/<int:course_id>", methods=["GET"], endpoint="schedules_by_course")
    @login_required
    def schedules_by_course(course_id: int):
        return jsonify(to_jsonable(service.list_by_course(course_id)))

    @app.route("/schedules/by-teacher/<int:teacher_id>", methods=["GET"], endpoint="schedules_by_teacher")
    @login_required
    def schedules_by_teacher(teacher_id: int):
        return jsonify(to_jsonable(service.list_by_teacher(teacher_id, query_int("semester"))))

    @app.route("/schedules/<int:schedule_id>", methods=["GET"], endpoint="schedules_get")
    @login_required
    def schedules_get(schedule_id: int):
        return jsonify(to_jsonable(service.get(schedule_id)))

    @app.route("/schedules/<int:schedule_id>", methods=["PATCH"], endpoint="schedules_update")
    @roles_required(Role.ADMIN)
    def schedules_update(schedule_id: int):
        patch = ScheduleUpdate.from_payload(json_body())
        return jsonify(to_jsonable(service.update(schedule_id, patch, principal=current_principal())))

    @app.route("/schedules/<int:schedule_id>", methods=["DELETE"], endpoint="schedules_delete")
    @roles_required(Role.ADMIN)
    def schedules_delete(schedule_id: int):
        service.remove(schedule_id, principal=current_principal())
        return jsonify({"success": True, "message": "Schedule deleted"})
