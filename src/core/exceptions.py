"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the session core."""

    # Identity
    AUTH_FAILURE = "AUTH_FAILURE"

    # Geolocation
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"

    # Path recording
    ALREADY_RECORDING = "ALREADY_RECORDING"
    NOT_RECORDING = "NOT_RECORDING"
    PATH_TOO_SHORT = "PATH_TOO_SHORT"

    # Territories
    DEGENERATE_TERRITORY = "DEGENERATE_TERRITORY"

    # Profiles
    VALIDATION_ERROR = "VALIDATION_ERROR"
    HANDLE_CONFLICT = "HANDLE_CONFLICT"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    PROFILE_ALREADY_EXISTS = "PROFILE_ALREADY_EXISTS"

    # Document store
    DOCUMENT_CONFLICT = "DOCUMENT_CONFLICT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

    # Session state machine
    INVALID_TRANSITION = "INVALID_TRANSITION"


class AppException(Exception):
    """Base application exception.

    ``recoverable`` failures resolve to a well-defined session state; the
    session state machine records them instead of letting them escape.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Any | None = None,
        recoverable: bool = True,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.details = details
        self.recoverable = recoverable
        super().__init__(self.message)


class AuthFailureError(AppException):
    """The identity provider rejected or cancelled the login."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(
            error_code=ErrorCode.AUTH_FAILURE,
            message=message,
        )


class PositionUnavailableError(AppException):
    """The geolocation sensor denied access or timed out."""

    def __init__(self, reason: str = "Position unavailable") -> None:
        super().__init__(
            error_code=ErrorCode.POSITION_UNAVAILABLE,
            message=reason,
            details={"reason": reason},
        )


class AlreadyRecordingError(AppException):
    """A path is already being recorded."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_RECORDING,
            message="A path is already being recorded",
        )


class NotRecordingError(AppException):
    """The path recorder is idle."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_RECORDING,
            message="No path is being recorded",
        )


class PathTooShortError(AppException):
    """Too few points were recorded to define a territory."""

    def __init__(self, point_count: int) -> None:
        super().__init__(
            error_code=ErrorCode.PATH_TOO_SHORT,
            message=f"Path has {point_count} point(s); at least 2 are required",
            details={"point_count": point_count},
        )


class DegenerateTerritoryError(AppException):
    """The closed path encloses too little ground to claim."""

    def __init__(self, area_m2: float, min_area_m2: float) -> None:
        super().__init__(
            error_code=ErrorCode.DEGENERATE_TERRITORY,
            message=f"Enclosed area {area_m2:.1f} m² is below the {min_area_m2:.1f} m² minimum",
            details={"area_m2": area_m2, "min_area_m2": min_area_m2},
        )


class ProfileValidationError(AppException):
    """Submitted profile form is invalid."""

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        super().__init__(
            error_code=ErrorCode.VALIDATION_ERROR,
            message="Profile form validation failed",
            details=errors,
        )


class HandleConflictError(AppException):
    """The normalized handle is already taken."""

    def __init__(self, handle: str) -> None:
        super().__init__(
            error_code=ErrorCode.HANDLE_CONFLICT,
            message=f"Handle already taken: {handle}",
            details={"handle": handle},
        )


class ProfileNotFoundError(AppException):
    """Profile document does not exist."""

    def __init__(self, uid: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_NOT_FOUND,
            message=f"Profile not found: {uid}",
            details={"uid": uid},
        )


class ProfileAlreadyExistsError(AppException):
    """User already completed onboarding."""

    def __init__(self, uid: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_ALREADY_EXISTS,
            message=f"Profile already exists: {uid}",
            details={"uid": uid},
        )


class DocumentConflictError(AppException):
    """A document created as new already exists in the store."""

    def __init__(self, namespace: str, key: str) -> None:
        super().__init__(
            error_code=ErrorCode.DOCUMENT_CONFLICT,
            message=f"Document already exists: {namespace}/{key}",
            details={"namespace": namespace, "key": key},
        )


class StoreUnavailableError(AppException):
    """Document store read or write failed."""

    def __init__(self, message: str = "Document store unavailable") -> None:
        super().__init__(
            error_code=ErrorCode.STORE_UNAVAILABLE,
            message=message,
        )


class InvalidTransitionError(AppException):
    """Action is not allowed in the current session state."""

    def __init__(self, action: str, state: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_TRANSITION,
            message=f"Cannot {action} while {state}",
            details={"action": action, "state": state},
            recoverable=False,
        )
