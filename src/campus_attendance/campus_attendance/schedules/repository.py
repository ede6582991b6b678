from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, Set

from ..core.enums import DayOfWeek
from .model import NewSchedule, Schedule


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        raise NotImplementedError

    def create(self, new: NewSchedule) -> Schedule:
        """Insert a row.

        Raises DuplicateKeyError when the (group, day, slot, semester) key is taken.
        """

        raise NotImplementedError

    def update(self, *, schedule_id: int, changes: Mapping[str, Any]) -> Optional[Schedule]:
        """Write the given scalar columns and return the fresh row."""

        raise NotImplementedError

    def delete(self, *, schedule_id: int) -> bool:
        raise NotImplementedError

    def list_all(self) -> Sequence[Schedule]:
        raise NotImplementedError

    def list_active(
        self,
        *,
        group_id: Optional[int] = None,
        course_id: Optional[int] = None,
        teacher_user_id: Optional[int] = None,
        semester: Optional[int] = None,
        day_of_week: Optional[DayOfWeek] = None,
    ) -> Sequence[Schedule]:
        """Active schedules matching every given filter, in grid order.

        ``teacher_user_id`` filters through the course's assigned teacher.
        """

        raise NotImplementedError

    def course_ids_for_group(self, group_id: int) -> Set[int]:
        raise NotImplementedError
