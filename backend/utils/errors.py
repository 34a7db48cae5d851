# backend/utils/errors.py
from typing import Any, Optional

from fastapi import HTTPException, status


# Base class for every error the API raises on purpose.
# Carries a machine readable code next to the HTTP status; the handlers in
# main.py turn it into the failure envelope.
class ApiError(HTTPException):
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "INTERNAL_ERROR"
    default_message = "Something went wrong!"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        details: Any = None,
        status_code: Optional[int] = None,
        headers: Optional[dict] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        super().__init__(
            status_code=status_code or self.default_status,
            detail=self.message,
            headers=headers,
        )


class BadRequestError(ApiError):
    default_status = status.HTTP_400_BAD_REQUEST
    default_code = "BAD_REQUEST"
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    default_status = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"
    default_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class ForbiddenError(ApiError):
    default_status = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(ApiError):
    default_status = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(ApiError):
    default_status = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"
    default_message = "Conflict"

    def __init__(self, message: Optional[str] = None, *, field: Optional[str] = None, **kwargs):
        if field and "details" not in kwargs:
            kwargs["details"] = {"validationErrors": [{"field": field, "message": message}]}
        super().__init__(message, **kwargs)


# Unclassified failure; also what the catch-all handler reports
class InternalError(ApiError):
    pass


# Fallback codes for plain HTTPExceptions raised by FastAPI itself
STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def code_for_status(status_code: int) -> str:
    return STATUS_CODES.get(status_code, "INTERNAL_ERROR" if status_code >= 500 else "ERROR")
