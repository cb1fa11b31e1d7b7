"""Exception hierarchy and HTTP error mapping for ddrive."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class DDriveError(Exception):
    """
    Base exception for ddrive.

    Attributes:
        details: Optional structured information (e.g., HTTP status, entry id).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class InvalidStateError(DDriveError):
    """Raised when the engine is used in an invalid state (e.g., preview not open)."""


class AuthError(DDriveError):
    """Raised when the API token is missing, invalid or expired (HTTP 401)."""


class PermissionError(DDriveError):
    """Raised when access is denied (HTTP 403)."""


class InvalidArgumentError(DDriveError):
    """Raised when request arguments are invalid (HTTP 400, etc.)."""


class NotFoundError(DDriveError):
    """Raised when a remote entry no longer exists (HTTP 404, stale reference)."""


class ConflictError(DDriveError):
    """Raised when a resource conflict occurs (HTTP 409/412, duplicate name)."""


class RateLimitError(DDriveError):
    """Raised when rate-limited (HTTP 429)."""


class NetworkError(DDriveError):
    """Raised when the request never completed (connection, timeout)."""


class ApiError(DDriveError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to ddrive exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> DDriveError:
    """
    Map an HTTP error to a ddrive exception.

    Policy:
        - 400 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> PermissionError
        - 404 -> NotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - 5xx and anything else -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)


def user_message(exc: BaseException, fallback: str) -> str:
    """
    Return user-facing text for a failure.

    Conflicts get their own wording so a duplicate name is never reported as
    a generic failure. The server-provided message wins when there is one.
    """
    if isinstance(exc, ConflictError):
        if exc.details.get("server_message"):
            return str(exc)
        return "A file with that name already exists"
    if isinstance(exc, DDriveError) and exc.details.get("server_message"):
        return str(exc)
    return fallback
