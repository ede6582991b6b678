from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LATE_THRESHOLD_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .directory.mysql_directory_repository import MySQLDirectoryRepository
from .directory.repository import DirectoryRepository
from .leave_requests.mysql_leave_request_repository import MySQLLeaveRequestRepository
from .leave_requests.reconciler import LeaveReconciler
from .leave_requests.repository import LeaveRequestRepository
from .leave_requests.service import LeaveRequestService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .sessions.codes import CodeGenerator
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    directory_repo: DirectoryRepository
    schedules_repo: ScheduleRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository
    leave_requests_repo: LeaveRequestRepository

    schedule_service: ScheduleService
    session_service: SessionService
    attendance_service: AttendanceService
    leave_reconciler: LeaveReconciler
    leave_request_service: LeaveRequestService


def assemble(
    *,
    directory_repo: DirectoryRepository,
    schedules_repo: ScheduleRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    leave_requests_repo: LeaveRequestRepository,
    conn: Optional[DatabaseConnection] = None,
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
    admin_can_manage_sessions: bool = True,
    code_generator: CodeGenerator | None = None,
) -> Container:
    """Wire services on top of the given repositories (MySQL or in-memory)."""

    schedule_service = ScheduleService(schedules_repo, directory_repo)
    session_service = SessionService(
        sessions_repo,
        directory_repo,
        schedule_service,
        code_generator=code_generator,
        admin_can_manage=admin_can_manage_sessions,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        session_service,
        schedule_service,
        directory_repo,
        strategy_factory=AttendanceStrategyFactory(),
        late_threshold_minutes=late_threshold_minutes,
    )
    leave_reconciler = LeaveReconciler(directory_repo, schedules_repo, sessions_repo, attendance_repo)
    leave_request_service = LeaveRequestService(leave_requests_repo, directory_repo, leave_reconciler)

    return Container(
        conn=conn,
        directory_repo=directory_repo,
        schedules_repo=schedules_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        leave_requests_repo=leave_requests_repo,
        schedule_service=schedule_service,
        session_service=session_service,
        attendance_service=attendance_service,
        leave_reconciler=leave_reconciler,
        leave_request_service=leave_request_service,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return assemble(
        conn=conn,
        directory_repo=MySQLDirectoryRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leave_requests_repo=MySQLLeaveRequestRepository(conn),
        late_threshold_minutes=int(getattr(settings, "LATE_THRESHOLD_MINUTES", DEFAULT_LATE_THRESHOLD_MINUTES)),
        admin_can_manage_sessions=bool(getattr(settings, "ADMIN_CAN_MANAGE_SESSIONS", True)),
    )
