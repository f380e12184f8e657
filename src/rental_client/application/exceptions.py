from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ConflictError(AppError):
    """Requested state transition is not allowed from the current state."""


class ValidationError(AppError):
    """Client-side input rejected before any request is made."""


class TransportError(AppError):
    """The request never produced an HTTP response."""


class ApiError(AppError):
    """The server answered with a non-success status."""

    def __init__(
        self,
        status_code: int,
        detail: str = "",
        payload: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(detail)


class AuthenticationError(ApiError):
    """401 from the server. The session has already been cleared when this is raised."""

    def __init__(self, detail: str = "Session expired", payload: dict[str, Any] | None = None) -> None:
        super().__init__(401, detail, payload)


def error_message(exc: BaseException, fallback: str) -> str:
    """Human-readable text for a failure: the server's own wording when it sent one."""
    if isinstance(exc, (ApiError, ValidationError, ConflictError)) and exc.detail:
        return exc.detail
    return fallback
