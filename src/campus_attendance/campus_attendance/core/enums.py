from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role names supplied by the identity provider."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class TimeSlot(str, Enum):
    """One-hour teaching slots, declared in grid order."""

    SLOT_7_8 = "07:00-08:00"
    SLOT_8_9 = "08:00-09:00"
    SLOT_9_10 = "09:00-10:00"
    SLOT_10_11 = "10:00-11:00"
    SLOT_13_14 = "13:00-14:00"
    SLOT_14_15 = "14:00-15:00"
    SLOT_15_16 = "15:00-16:00"
    SLOT_16_17 = "16:00-17:00"


class ScheduleType(str, Enum):
    LECTURE = "lecture"
    PRACTICAL = "practical"
    LAB = "lab"


class SessionStatus(str, Enum):
    """Lifecycle of a dated class session."""

    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendanceStatus(str, Enum):
    """Outcome stored per (session, student)."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class CheckInMethod(str, Enum):
    CODE = "code"
    MANUAL = "manual"


class RequestStatus(str, Enum):
    """Review states of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(str, Enum):
    SICK = "sick"
    ANNUAL = "annual"
    PERSONAL = "personal"
    EMERGENCY = "emergency"
    UNPAID = "unpaid"
