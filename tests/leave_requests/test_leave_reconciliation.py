from datetime import date, datetime

import pytest

from src.campus_attendance.campus_attendance.attendance.dto import MarkInput, MarkItem
from src.campus_attendance.campus_attendance.core.enums import (
    AttendanceStatus,
    CheckInMethod,
    DayOfWeek,
    LeaveType,
    RequestStatus,
    ScheduleType,
    TimeSlot,
)
from src.campus_attendance.campus_attendance.leave_requests.dto import LeaveRequestInput, ReviewInput
from src.campus_attendance.campus_attendance.leave_requests.reconciler import LeaveReconciler
from src.campus_attendance.campus_attendance.schedules.dto import ScheduleInput
from src.campus_attendance.campus_attendance.sessions.dto import SessionInput

REVIEWED_AT = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def timetable(world):
    """Group 1 takes course 1 on Mondays; two sessions, one inside the leave window."""

    world.container.schedule_service.create(
        ScheduleInput(
            course_id=1,
            group_id=1,
            semester=1,
            day_of_week=DayOfWeek.MONDAY,
            start_slot=TimeSlot.SLOT_8_9,
            duration=2,
            schedule_type=ScheduleType.LECTURE,
            room_number="A-101",
        ),
        principal=world.admin,
    )
    svc = world.container.session_service
    inside = svc.create(
        SessionInput(
            title="Week 1",
            course_id=1,
            start_time=datetime(2026, 3, 2, 8),
            end_time=datetime(2026, 3, 2, 10),
        ),
        principal=world.teacher,
    )
    outside = svc.create(
        SessionInput(
            title="Week 2",
            course_id=1,
            start_time=datetime(2026, 3, 9, 8),
            end_time=datetime(2026, 3, 9, 10),
        ),
        principal=world.teacher,
    )
    return inside, outside


def _file(world, principal, start=date(2026, 3, 2), end=date(2026, 3, 3)):
    return world.container.leave_request_service.create(
        LeaveRequestInput(leave_type=LeaveType.SICK, start_date=start, end_date=end, reason="Flu"),
        principal=principal,
    )


def _approve(world, request_id):
    return world.container.leave_request_service.review(
        request_id, ReviewInput(status=RequestStatus.APPROVED), principal=world.admin, now=REVIEWED_AT
    )


def test_approval_excuses_sessions_inside_window(world, timetable):
    inside, outside = timetable
    request = _file(world, world.student)

    outcome = _approve(world, request.request_id)

    assert outcome.request.status == RequestStatus.APPROVED
    assert outcome.reconciliation.excused_session_ids == (inside.session_id,)
    assert outcome.reconciliation.complete

    record = world.attendance_repo.get_for_session_and_student(
        session_id=inside.session_id, student_id=world.student.user_id
    )
    assert record.status == AttendanceStatus.EXCUSED
    assert record.check_in_method == CheckInMethod.MANUAL
    assert record.marked_by_id == world.admin.user_id
    assert record.remarks == "Approved leave (sick): Flu"
    assert world.attendance_repo.list_by_session(outside.session_id) == []


def test_single_day_leave_covers_whole_day(world, timetable):
    inside, _ = timetable

    outcome = _approve(world, _file(world, world.student, date(2026, 3, 2), date(2026, 3, 2)).request_id)

    assert outcome.reconciliation.excused_session_ids == (inside.session_id,)


def test_existing_record_is_overwritten(world, timetable):
    inside, _ = timetable
    world.container.attendance_service.mark(
        MarkInput(session_id=inside.session_id, item=MarkItem(student_id=1, status=AttendanceStatus.ABSENT)),
        principal=world.teacher,
        now=datetime(2026, 3, 2, 9),
    )

    _approve(world, _file(world, world.student).request_id)

    rows = world.attendance_repo.list_by_session(inside.session_id)
    assert len(rows) == 1
    assert rows[0].status == AttendanceStatus.EXCUSED
    assert rows[0].marked_by_id == world.admin.user_id


def test_rejection_and_teacher_leave_touch_nothing(world, timetable):
    rejected = world.container.leave_request_service.review(
        _file(world, world.student).request_id,
        ReviewInput(status=RequestStatus.REJECTED, review_note="No certificate"),
        principal=world.admin,
        now=REVIEWED_AT,
    )
    teacher_leave = _approve(world, _file(world, world.teacher).request_id)

    assert rejected.reconciliation is None
    assert rejected.request.review_note == "No certificate"
    assert teacher_leave.reconciliation is None
    assert world.attendance_repo.rows == {}


def test_group_without_schedules_is_skipped(world, timetable):
    outcome = _approve(world, _file(world, world.outsider).request_id)

    assert outcome.reconciliation.excused_session_ids == ()
    assert outcome.reconciliation.skipped_reason == "group has no active schedules"


class _FlakyAttendance:
    """Delegates to the real fake but fails writes for one session."""

    def __init__(self, inner, failing_session_id):
        self._inner = inner
        self._failing = failing_session_id

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def create(self, new):
        if new.session_id == self._failing:
            raise RuntimeError("storage unavailable")
        return self._inner.create(new)


def test_failure_on_one_session_does_not_undo_others(world, timetable):
    inside, outside = timetable
    request = _file(world, world.student, date(2026, 3, 1), date(2026, 3, 10))
    reconciler = LeaveReconciler(
        world.directory,
        world.schedules_repo,
        world.sessions_repo,
        _FlakyAttendance(world.attendance_repo, inside.session_id),
    )

    result = reconciler.reconcile(request, reviewer_id=world.admin.user_id, now=REVIEWED_AT)

    assert result.failed_session_ids == (inside.session_id,)
    assert result.excused_session_ids == (outside.session_id,)
    assert not result.complete
    assert world.attendance_repo.list_by_session(outside.session_id)[0].status == AttendanceStatus.EXCUSED
