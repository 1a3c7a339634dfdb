"""Error kinds shared by repositories, services and the HTTP layer.

Repositories raise only ``NotFound``, ``Internal`` and ``RequestTimeout``.
Services add the business-rule kinds. The app's exception handlers are the
single place where a kind becomes an HTTP status and a ``{"error": ...}`` body.
"""

from __future__ import annotations

from typing import Optional


class AppError(Exception):
    status_code: int = 500
    default_message: str = "internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict[str, str]] = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "invalid request"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "authentication required"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict[str, str]] = None):
        super().__init__(message, headers or {"WWW-Authenticate": "Bearer"})


class InvalidToken(Unauthenticated):
    default_message = "invalid token"


class ExpiredToken(Unauthenticated):
    default_message = "token has expired"


class InvalidCredentials(Unauthenticated):
    default_message = "invalid email or password"


class Unauthorized(AppError):
    status_code = 403
    default_message = "you are not the owner of this resource"


class NotFound(AppError):
    status_code = 404
    default_message = "not found"


class TaskNotFound(NotFound):
    default_message = "task not found"


class Conflict(AppError):
    status_code = 409
    default_message = "conflict"


class EmailAlreadyExists(Conflict):
    default_message = "email already registered"


class Internal(AppError):
    status_code = 500


class RequestTimeout(AppError):
    status_code = 504
    default_message = "request deadline exceeded"


__all__ = [
    "AppError",
    "ValidationError",
    "Unauthenticated",
    "InvalidToken",
    "ExpiredToken",
    "InvalidCredentials",
    "Unauthorized",
    "NotFound",
    "TaskNotFound",
    "Conflict",
    "EmailAlreadyExists",
    "Internal",
    "RequestTimeout",
]
