from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import NewSession, Session


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Session]:
        raise NotImplementedError

    def create(self, new: NewSession) -> Session:
        """Insert a row.

        Raises DuplicateKeyError when the attendance code is already taken.
        """

        raise NotImplementedError

    def update(self, *, session_id: int, changes: Mapping[str, Any]) -> Optional[Session]:
        """Write scalar columns (title, times, status, code flags) and return the row."""

        raise NotImplementedError

    def delete(self, *, session_id: int) -> bool:
        raise NotImplementedError

    def list_all(self) -> Sequence[Session]:
        """All sessions, most recent start first."""

        raise NotImplementedError

    def list_by_creator(self, user_id: int) -> Sequence[Session]:
        raise NotImplementedError

    def list_by_course(self, course_id: int) -> Sequence[Session]:
        raise NotImplementedError

    def list_for_courses_between(
        self, *, course_ids: Sequence[int], start: datetime, end: datetime
    ) -> Sequence[Session]:
        """Sessions of the given courses whose start_time lies in [start, end]."""

        raise NotImplementedError

    def list_upcoming_for_courses(self, *, course_ids: Sequence[int], now: datetime) -> Sequence[Session]:
        """Active sessions, or scheduled ones ending after ``now``; earliest start first."""

        raise NotImplementedError

    def close_expired(self, now: datetime) -> int:
        """Complete every active session whose end_time is before ``now``."""

        raise NotImplementedError
