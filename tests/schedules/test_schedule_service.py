import pytest

from src.campus_attendance.campus_attendance.core.enums import DayOfWeek, ScheduleType, TimeSlot
from src.campus_attendance.campus_attendance.core.exceptions import (
    AuthorizationError,
    GroupConflict,
    InvalidDuration,
    NotFoundError,
    TeacherConflict,
)
from src.campus_attendance.campus_attendance.schedules.dto import ScheduleInput, ScheduleUpdate
from src.campus_attendance.campus_attendance.schedules.service import color_for_course


def _input(
    *,
    course_id=1,
    group_id=1,
    day=DayOfWeek.MONDAY,
    slot=TimeSlot.SLOT_7_8,
    duration=2,
    semester=1,
    **extra,
):
    return ScheduleInput(
        course_id=course_id,
        group_id=group_id,
        semester=semester,
        day_of_week=day,
        start_slot=slot,
        duration=duration,
        schedule_type=ScheduleType.LECTURE,
        room_number="A-101",
        **extra,
    )


def test_create_applies_defaults(world):
    svc = world.container.schedule_service

    schedule = svc.create(_input(), principal=world.admin)

    assert schedule.semester_weeks == 16
    assert schedule.is_active is True
    assert schedule.color == color_for_course(1) == "#9C27B0"


def test_explicit_color_and_weeks_are_kept(world):
    svc = world.container.schedule_service

    schedule = svc.create(_input(color="#abc", semester_weeks=10), principal=world.admin)

    assert schedule.color == "#abc"
    assert schedule.semester_weeks == 10


def test_only_admin_can_create(world):
    with pytest.raises(AuthorizationError):
        world.container.schedule_service.create(_input(), principal=world.teacher)


def test_duration_cannot_cross_lunch_gap(world):
    with pytest.raises(InvalidDuration) as exc:
        world.container.schedule_service.create(
            _input(slot=TimeSlot.SLOT_10_11, duration=2), principal=world.admin
        )

    assert "Maximum 1 hours" in str(exc.value)


def test_duration_up_to_block_end_is_accepted(world):
    schedule = world.container.schedule_service.create(
        _input(slot=TimeSlot.SLOT_13_14, duration=4), principal=world.admin
    )

    assert schedule.duration == 4


def test_group_conflict_names_existing_course(world):
    svc = world.container.schedule_service
    svc.create(_input(course_id=1), principal=world.admin)

    with pytest.raises(GroupConflict) as exc:
        svc.create(_input(course_id=2, slot=TimeSlot.SLOT_8_9, duration=1), principal=world.admin)

    assert "Programming I" in str(exc.value)


def test_teacher_conflict_across_groups(world):
    svc = world.container.schedule_service
    svc.create(_input(course_id=1, group_id=1), principal=world.admin)

    with pytest.raises(TeacherConflict) as exc:
        svc.create(_input(course_id=1, group_id=2, slot=TimeSlot.SLOT_8_9, duration=1), principal=world.admin)

    assert "Programming I" in str(exc.value)
    assert "CS-1A" in str(exc.value)


def test_adjacent_and_other_semester_or_day_do_not_conflict(world):
    svc = world.container.schedule_service
    svc.create(_input(course_id=1), principal=world.admin)

    svc.create(_input(course_id=2, slot=TimeSlot.SLOT_9_10, duration=2), principal=world.admin)
    svc.create(_input(course_id=2, semester=2), principal=world.admin)
    svc.create(_input(course_id=2, day=DayOfWeek.TUESDAY), principal=world.admin)

    assert len(svc.list_by_group(1)) == 4


def test_unknown_course_or_group(world):
    svc = world.container.schedule_service

    with pytest.raises(NotFoundError):
        svc.create(_input(course_id=99), principal=world.admin)
    with pytest.raises(NotFoundError):
        svc.create(_input(group_id=99), principal=world.admin)


def test_update_excludes_itself_from_conflict_check(world):
    svc = world.container.schedule_service
    schedule = svc.create(_input(duration=2), principal=world.admin)

    updated = svc.update(
        schedule.schedule_id, ScheduleUpdate(changes={"duration": 3}), principal=world.admin
    )

    assert updated.duration == 3


def test_update_into_conflict_is_rejected(world):
    svc = world.container.schedule_service
    svc.create(_input(course_id=1, slot=TimeSlot.SLOT_7_8, duration=2), principal=world.admin)
    other = svc.create(_input(course_id=2, slot=TimeSlot.SLOT_13_14, duration=1), principal=world.admin)

    with pytest.raises(GroupConflict):
        svc.update(
            other.schedule_id,
            ScheduleUpdate(changes={"start_slot": TimeSlot.SLOT_8_9}),
            principal=world.admin,
        )


def test_update_revalidates_block_rule(world):
    svc = world.container.schedule_service
    schedule = svc.create(_input(slot=TimeSlot.SLOT_7_8, duration=3), principal=world.admin)

    with pytest.raises(InvalidDuration):
        svc.update(
            schedule.schedule_id,
            ScheduleUpdate(changes={"start_slot": TimeSlot.SLOT_9_10}),
            principal=world.admin,
        )


def test_update_reassigns_course_id(world):
    svc = world.container.schedule_service
    schedule = svc.create(_input(course_id=1), principal=world.admin)

    svc.update(schedule.schedule_id, ScheduleUpdate(changes={"course_id": 2}), principal=world.admin)

    assert svc.get(schedule.schedule_id).course_id == 2
    assert svc.list_by_course(1) == []


def test_inactive_schedules_do_not_block_and_reactivation_is_checked(world):
    svc = world.container.schedule_service
    first = svc.create(_input(course_id=1, slot=TimeSlot.SLOT_7_8, duration=2), principal=world.admin)
    svc.update(first.schedule_id, ScheduleUpdate(changes={"is_active": False}), principal=world.admin)

    svc.create(_input(course_id=2, slot=TimeSlot.SLOT_8_9, duration=1), principal=world.admin)

    with pytest.raises(GroupConflict):
        svc.update(first.schedule_id, ScheduleUpdate(changes={"is_active": True}), principal=world.admin)


def test_storage_unique_key_maps_to_group_conflict(world):
    svc = world.container.schedule_service
    first = svc.create(_input(course_id=1), principal=world.admin)
    svc.update(first.schedule_id, ScheduleUpdate(changes={"is_active": False}), principal=world.admin)

    with pytest.raises(GroupConflict):
        svc.create(_input(course_id=2), principal=world.admin)


def test_queries_are_active_only_and_in_grid_order(world):
    svc = world.container.schedule_service
    wed = svc.create(_input(day=DayOfWeek.WEDNESDAY, slot=TimeSlot.SLOT_7_8, duration=1), principal=world.admin)
    mon_pm = svc.create(_input(day=DayOfWeek.MONDAY, slot=TimeSlot.SLOT_13_14, duration=1), principal=world.admin)
    mon_am = svc.create(_input(day=DayOfWeek.MONDAY, slot=TimeSlot.SLOT_9_10, duration=1), principal=world.admin)
    hidden = svc.create(_input(day=DayOfWeek.FRIDAY), principal=world.admin)
    svc.update(hidden.schedule_id, ScheduleUpdate(changes={"is_active": False}), principal=world.admin)

    ids = [s.schedule_id for s in svc.list_by_group(1)]

    assert ids == [mon_am.schedule_id, mon_pm.schedule_id, wed.schedule_id]


def test_formatted_view_has_every_day(world):
    svc = world.container.schedule_service
    svc.create(_input(day=DayOfWeek.THURSDAY), principal=world.admin)

    formatted = svc.list_by_group_formatted(1)

    assert list(formatted) == ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    assert len(formatted["thursday"]) == 1
    assert formatted["monday"] == []


def test_list_by_teacher_resolves_profile(world):
    svc = world.container.schedule_service
    svc.create(_input(course_id=1), principal=world.admin)
    svc.create(_input(course_id=2, day=DayOfWeek.FRIDAY), principal=world.admin)

    assert [s.course_id for s in svc.list_by_teacher(1)] == [1]
    assert [s.course_id for s in svc.list_by_teacher(2)] == [2]
    assert svc.list_by_teacher(3) == []
    assert svc.list_by_teacher(404) == []


def test_list_mine_and_my_teaching(world):
    svc = world.container.schedule_service
    svc.create(_input(course_id=1, group_id=1), principal=world.admin)
    svc.create(_input(course_id=2, group_id=2, day=DayOfWeek.TUESDAY), principal=world.admin)

    assert [s.group_id for s in svc.list_mine(world.student)] == [1]
    assert [s.group_id for s in svc.list_mine(world.outsider)] == [2]
    assert [s.course_id for s in svc.list_my_teaching(world.teacher)] == [1]


def test_remove(world):
    svc = world.container.schedule_service
    schedule = svc.create(_input(), principal=world.admin)

    svc.remove(schedule.schedule_id, principal=world.admin)

    with pytest.raises(NotFoundError):
        svc.remove(schedule.schedule_id, principal=world.admin)
