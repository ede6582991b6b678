from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Set

from ..auth.principal import Principal
from ..core.constants import DEFAULT_SEMESTER_WEEKS, SCHEDULE_COLORS
from ..core.enums import DayOfWeek, TimeSlot
from ..core.exceptions import (
    AuthorizationError,
    DuplicateKeyError,
    GroupConflict,
    InvalidDuration,
    NotFoundError,
    TeacherConflict,
)
from ..directory.repository import DirectoryRepository
from . import timegrid
from .dto import PLACEMENT_FIELDS, ScheduleInput, ScheduleUpdate
from .model import NewSchedule, Schedule
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


def color_for_course(course_id) -> str:
    """Deterministic palette colour for a course id (32-bit string hash)."""

    h = 0
    for ch in str(course_id):
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 1 << 32
    return SCHEDULE_COLORS[abs(h) % len(SCHEDULE_COLORS)]


def find_overlapping(
    schedules: Sequence[Schedule],
    start_slot: TimeSlot,
    duration: int,
    exclude_id: Optional[int] = None,
) -> Optional[Schedule]:
    for existing in schedules:
        if exclude_id is not None and existing.schedule_id == exclude_id:
            continue
        if timegrid.overlaps(start_slot, duration, existing.start_slot, existing.duration):
            return existing
    return None


class ScheduleService:
    """Weekly course/group timetable with no double booking."""

    def __init__(self, schedules: ScheduleRepository, directory: DirectoryRepository):
        self._schedules = schedules
        self._directory = directory

    # -- validation -----------------------------------------------------------------

    @staticmethod
    def _require_admin(principal: Principal) -> None:
        if not principal.is_admin:
            raise AuthorizationError("Only administrators can manage schedules")

    @staticmethod
    def _check_duration(start_slot: TimeSlot, duration: int) -> None:
        available = timegrid.remaining_slots_in_block(start_slot)
        if duration > available:
            raise InvalidDuration(
                f"Duration of {duration} hours exceeds available slots. "
                f"Maximum {available} hours available in this session."
            )

    def _course_name(self, course_id: int) -> str:
        course = self._directory.get_course(course_id)
        return course.name if course else f"course #{course_id}"

    def _check_group_conflict(
        self,
        *,
        group_id: int,
        semester: int,
        day_of_week: DayOfWeek,
        start_slot: TimeSlot,
        duration: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        existing = self._schedules.list_active(group_id=group_id, semester=semester, day_of_week=day_of_week)
        clash = find_overlapping(existing, start_slot, duration, exclude_id)
        if clash:
            raise GroupConflict(
                f"Schedule conflict: {self._course_name(clash.course_id)} is already scheduled "
                "for this group at this time"
            )

    def _check_teacher_conflict(
        self,
        *,
        teacher_user_id: Optional[int],
        semester: int,
        day_of_week: DayOfWeek,
        start_slot: TimeSlot,
        duration: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        if teacher_user_id is None:
            return
        existing = self._schedules.list_active(
            teacher_user_id=teacher_user_id, semester=semester, day_of_week=day_of_week
        )
        clash = find_overlapping(existing, start_slot, duration, exclude_id)
        if clash:
            group = self._directory.get_group(clash.group_id)
            group_name = group.name if group else "another group"
            raise TeacherConflict(
                f"Teacher conflict: Teacher is already scheduled for {self._course_name(clash.course_id)} "
                f"with {group_name} at this time"
            )

    def _require_course(self, course_id: int):
        course = self._directory.get_course(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def _require_group(self, group_id: int) -> None:
        if not self._directory.get_group(group_id):
            raise NotFoundError("Group not found")

    # -- commands -------------------------------------------------------------------

    def create(self, data: ScheduleInput, *, principal: Principal) -> Schedule:
        self._require_admin(principal)
        self._check_duration(data.start_slot, data.duration)

        course = self._require_course(data.course_id)
        self._require_group(data.group_id)

        self._check_group_conflict(
            group_id=data.group_id,
            semester=data.semester,
            day_of_week=data.day_of_week,
            start_slot=data.start_slot,
            duration=data.duration,
        )
        self._check_teacher_conflict(
            teacher_user_id=course.teacher_id,
            semester=data.semester,
            day_of_week=data.day_of_week,
            start_slot=data.start_slot,
            duration=data.duration,
        )

        new = NewSchedule(
            course_id=data.course_id,
            group_id=data.group_id,
            semester=data.semester,
            semester_weeks=data.semester_weeks or DEFAULT_SEMESTER_WEEKS,
            day_of_week=data.day_of_week,
            start_slot=data.start_slot,
            duration=data.duration,
            schedule_type=data.schedule_type,
            room_number=data.room_number,
            color=data.color or color_for_course(data.course_id),
        )
        try:
            schedule = self._schedules.create(new)
        except DuplicateKeyError as e:
            raise GroupConflict("Schedule conflict: this group already has a class starting in this slot") from e

        logger.info(
            "Schedule %s created: course=%s group=%s %s %s x%s",
            schedule.schedule_id,
            schedule.course_id,
            schedule.group_id,
            schedule.day_of_week.value,
            schedule.start_slot.value,
            schedule.duration,
        )
        return schedule

    def update(self, schedule_id: int, patch: ScheduleUpdate, *, principal: Principal) -> Schedule:
        self._require_admin(principal)

        current = self._schedules.get_by_id(int(schedule_id))
        if not current:
            raise NotFoundError("Schedule not found")

        changes = {k: v for k, v in patch.changes.items() if getattr(current, k) != v}
        if not changes:
            return current

        merged = replace(current, **changes)

        if "start_slot" in changes or "duration" in changes:
            self._check_duration(merged.start_slot, merged.duration)
        if "course_id" in changes:
            self._require_course(merged.course_id)
        if "group_id" in changes:
            self._require_group(merged.group_id)

        reactivated = changes.get("is_active") is True
        placement_changed = any(k in changes for k in PLACEMENT_FIELDS)

        if merged.is_active and (placement_changed or reactivated):
            self._check_group_conflict(
                group_id=merged.group_id,
                semester=merged.semester,
                day_of_week=merged.day_of_week,
                start_slot=merged.start_slot,
                duration=merged.duration,
                exclude_id=current.schedule_id,
            )
            course = self._directory.get_course(merged.course_id)
            self._check_teacher_conflict(
                teacher_user_id=course.teacher_id if course else None,
                semester=merged.semester,
                day_of_week=merged.day_of_week,
                start_slot=merged.start_slot,
                duration=merged.duration,
                exclude_id=current.schedule_id,
            )

        try:
            updated = self._schedules.update(schedule_id=current.schedule_id, changes=changes)
        except DuplicateKeyError as e:
            raise GroupConflict("Schedule conflict: this group already has a class starting in this slot") from e
        if not updated:
            raise NotFoundError("Schedule not found")

        logger.info("Schedule %s updated: %s", current.schedule_id, sorted(changes))
        return updated

    def remove(self, schedule_id: int, *, principal: Principal) -> None:
        self._require_admin(principal)
        if not self._schedules.delete(schedule_id=int(schedule_id)):
            raise NotFoundError("Schedule not found")
        logger.info("Schedule %s deleted", schedule_id)

    # -- queries --------------------------------------------------------------------

    def get(self, schedule_id: int) -> Schedule:
        schedule = self._schedules.get_by_id(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def list_all(self) -> Sequence[Schedule]:
        return self._schedules.list_all()

    def list_by_group(self, group_id: int, semester: Optional[int] = None) -> Sequence[Schedule]:
        return self._schedules.list_active(group_id=int(group_id), semester=semester)

    def list_by_group_formatted(self, group_id: int, semester: Optional[int] = None) -> Dict[str, List[Schedule]]:
        """Schedules keyed by day name (all seven days present) for calendar views."""

        schedules = self.list_by_group(group_id, semester)
        return {day.value: [s for s in schedules if s.day_of_week == day] for day in timegrid.days_of_week()}

    def list_by_course(self, course_id: int) -> Sequence[Schedule]:
        return self._schedules.list_active(course_id=int(course_id))

    def list_by_teacher(self, teacher_id: int, semester: Optional[int] = None) -> Sequence[Schedule]:
        """``teacher_id`` is the directory profile id; courses reference the user id."""

        teacher = self._directory.get_teacher(int(teacher_id))
        if not teacher or teacher.user_id is None:
            return []
        return self._schedules.list_active(teacher_user_id=teacher.user_id, semester=semester)

    def student_group_id(self, principal: Principal) -> Optional[int]:
        if principal.group_id is not None:
            return principal.group_id
        profile = self._directory.get_student_by_user(principal.user_id)
        return profile.group_id if profile else None

    def list_mine(self, principal: Principal, semester: Optional[int] = None) -> Sequence[Schedule]:
        group_id = self.student_group_id(principal)
        if group_id is None:
            return []
        return self.list_by_group(group_id, semester)

    def list_my_teaching(self, principal: Principal, semester: Optional[int] = None) -> Sequence[Schedule]:
        return self._schedules.list_active(teacher_user_id=principal.user_id, semester=semester)

    def course_ids_for_group(self, group_id: int) -> Set[int]:
        return set(self._schedules.course_ids_for_group(int(group_id)))

    def is_scheduled(self, *, group_id: int, course_id: int) -> bool:
        return int(course_id) in self.course_ids_for_group(group_id)
