from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional

from ..core.enums import Role
from ..core.exceptions import AuthenticationError


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, as vouched for by the identity provider.

    ``user_id`` is the identity-provider account id. The optional profile ids
    cross-reference the student/teacher directory.
    """

    user_id: int
    roles: FrozenSet[Role] = field(default_factory=frozenset)
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None
    group_id: Optional[int] = None

    def has(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    @property
    def is_teacher(self) -> bool:
        return Role.TEACHER in self.roles

    @property
    def is_student(self) -> bool:
        return Role.STUDENT in self.roles


def _opt_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def principal_from_session(data: Mapping[str, Any]) -> Principal:
    """Build a Principal from the claims stored in the Flask session.

    Unknown role names are ignored rather than rejected.
    """

    if data.get("user_id") is None:
        raise AuthenticationError("Authentication required")

    raw_roles = data.get("roles") or []
    if isinstance(raw_roles, str):
        raw_roles = [raw_roles]
    known = {r.value for r in Role}
    roles = frozenset(Role(r) for r in raw_roles if r in known)

    try:
        return Principal(
            user_id=int(data["user_id"]),
            roles=roles,
            student_id=_opt_int(data.get("student_id")),
            teacher_id=_opt_int(data.get("teacher_id")),
            group_id=_opt_int(data.get("group_id")),
        )
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid session claims") from e
