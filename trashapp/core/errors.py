"""Typed application errors.

Services raise these; the exception handlers registered in ``trashapp.main``
turn them into error envelopes. Nothing below knows about HTTP transport
beyond the status code it maps to.
"""
import re
from typing import Any, Dict, Optional

# sqlite: "UNIQUE constraint failed: users.email", postgres: "Key (email)=(...)"
UNIQUE_VIOLATION_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: (?:\w+\.)?(\w+)"),
    re.compile(r"Key \((\w+)\)="),
)


class AppError(Exception):
    status_code: int = 400
    code: str = "ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class ConflictError(AppError):
    status_code = 409
    code = "DUPLICATE_ERROR"

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"{field} already exists",
            details={field: f"{field} must be unique"},
        )
        self.field = field


class AccountLockedError(AppError):
    status_code = 423
    code = "ACCOUNT_LOCKED"

    def __init__(
        self,
        message: str = "Account is temporarily locked due to too many failed login attempts",
    ) -> None:
        super().__init__(message)


class ValidationFailed(AppError):
    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, field_errors: Dict[str, str]) -> None:
        super().__init__("Validation failed", details=field_errors)


def duplicate_field(message: str) -> Optional[str]:
    """Column name from a driver's unique-violation message, if it names one."""
    for pattern in UNIQUE_VIOLATION_PATTERNS:
        match = pattern.search(message or "")
        if match:
            return match.group(1)
    return None


def conflict_from_integrity(orig: Any) -> AppError:
    field = duplicate_field(str(orig))
    if field is None:
        return AppError("Duplicate field value entered", "DUPLICATE_ERROR", 409)
    return ConflictError(field)
