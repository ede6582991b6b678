from __future__ import annotations

from typing import Dict, Optional, Protocol, Sequence

from .model import Course, Group, StudentProfile, TeacherProfile


class DirectoryRepository(Protocol):
    """Read-only view of the course/group/student/teacher directory.

    The core never writes these records; it only resolves ids and ownership.
    """

    def get_course(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def get_group(self, group_id: int) -> Optional[Group]:
        raise NotImplementedError

    def get_student(self, student_id: int) -> Optional[StudentProfile]:
        raise NotImplementedError

    def get_student_by_user(self, user_id: int) -> Optional[StudentProfile]:
        raise NotImplementedError

    def get_teacher(self, teacher_id: int) -> Optional[TeacherProfile]:
        raise NotImplementedError

    def get_teacher_by_user(self, user_id: int) -> Optional[TeacherProfile]:
        raise NotImplementedError

    def map_student_user_ids(self, student_ids: Sequence[int]) -> Dict[int, Optional[int]]:
        """Map directory profile ids to identity-provider user ids.

        Unknown profiles are absent from the result; unlinked ones map to None.
        """

        raise NotImplementedError
