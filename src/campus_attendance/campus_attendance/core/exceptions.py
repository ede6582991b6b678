from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "Error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "Validation"


class AuthenticationError(DomainError):
    """Raised when a request carries no authenticated principal."""

    kind = "Authentication"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "Forbidden"


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    kind = "NotFound"


class ConflictError(DomainError):
    """Raised on uniqueness or overlap violations."""

    kind = "Conflict"


class PreconditionError(DomainError):
    """Raised when an action is not allowed in the record's current state."""

    kind = "PreconditionFailed"


class DuplicateKeyError(ConflictError):
    """Storage-level unique constraint violation.

    Repositories raise this; services translate it into a named conflict.
    """

    def __init__(self, message: str = "Duplicate record", *, key: str | None = None):
        super().__init__(message)
        self.key = key


class InvalidDuration(ValidationError):
    pass


class GroupConflict(ConflictError):
    pass


class TeacherConflict(ConflictError):
    pass


class DuplicateTitle(ConflictError):
    pass


class TimeOverlap(ConflictError):
    pass


class AlreadyCheckedIn(ConflictError):
    pass


class DuplicateAttendanceCode(ConflictError):
    pass


class NotCourseOwner(AuthorizationError):
    pass


class SessionNotFound(NotFoundError):
    pass


class InvalidCode(NotFoundError):
    pass


class OutsideSessionWindow(PreconditionError):
    pass


class CodeInactive(PreconditionError):
    pass


class SessionNotActive(PreconditionError):
    pass


class NotScheduled(PreconditionError):
    pass
