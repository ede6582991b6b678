from __future__ import annotations

import secrets
from typing import Callable

from ..core.constants import ATTENDANCE_CODE_ALPHABET, ATTENDANCE_CODE_LENGTH

CodeGenerator = Callable[[], str]


def generate_attendance_code(length: int = ATTENDANCE_CODE_LENGTH) -> str:
    """Random code without the look-alike characters I, O, 0 and 1."""
    return "".join(secrets.choice(ATTENDANCE_CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()
