# app/core/errors.py
"""Domain errors raised by services and rendered by the handlers in app.main.

Each error carries a short machine-matchable ``code`` (``NOT_FOUND``,
``NOT_ENROLLED``...), a human readable message and the HTTP status the API
layer answers with.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotEnrolledError(ForbiddenError):
    code = "NOT_ENROLLED"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class ResourceExhaustedError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "RESOURCE_EXHAUSTED"

