import itertools

import pytest

from src.campus_attendance.campus_attendance.core.constants import MAX_SCHEDULE_DURATION
from src.campus_attendance.campus_attendance.core.enums import DayOfWeek, ScheduleType
from src.campus_attendance.campus_attendance.core.exceptions import ConflictError, GroupConflict, TeacherConflict
from src.campus_attendance.campus_attendance.schedules import timegrid
from src.campus_attendance.campus_attendance.schedules.dto import ScheduleInput

# every placement the block rule accepts
PLACEMENTS = [
    (slot, duration)
    for slot in timegrid.ordered_slots()
    for duration in range(1, MAX_SCHEDULE_DURATION + 1)
    if duration <= timegrid.remaining_slots_in_block(slot)
]


def _input(course_id, group_id, placement):
    slot, duration = placement
    return ScheduleInput(
        course_id=course_id,
        group_id=group_id,
        semester=1,
        day_of_week=DayOfWeek.THURSDAY,
        start_slot=slot,
        duration=duration,
        schedule_type=ScheduleType.LECTURE,
        room_number="C-3",
    )


def test_placements_cover_both_blocks():
    assert len(PLACEMENTS) == 20


@pytest.mark.parametrize(
    "second_course, second_group, expected",
    [
        # same group, different teacher
        (2, 1, GroupConflict),
        # same teacher, different group
        (1, 2, TeacherConflict),
    ],
)
def test_second_insert_conflicts_exactly_when_slots_overlap(world_factory, second_course, second_group, expected):
    mismatches = []
    for first, second in itertools.product(PLACEMENTS, PLACEMENTS):
        w = world_factory()
        svc = w.container.schedule_service
        svc.create(_input(1, 1, first), principal=w.admin)

        clash = timegrid.overlaps(first[0], first[1], second[0], second[1])
        try:
            svc.create(_input(second_course, second_group, second), principal=w.admin)
            outcome = None
        except ConflictError as e:
            outcome = type(e)

        if outcome is not (expected if clash else None):
            mismatches.append((first, second, outcome))

    assert mismatches == []


def test_unrelated_group_and_teacher_never_conflict(world_factory):
    for first, second in itertools.product(PLACEMENTS, PLACEMENTS):
        w = world_factory()
        svc = w.container.schedule_service
        svc.create(_input(1, 1, first), principal=w.admin)

        assert svc.create(_input(2, 2, second), principal=w.admin).duration == second[1]
