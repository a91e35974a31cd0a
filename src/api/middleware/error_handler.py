"""Error types and the handlers that render them as ErrorResponse."""

import logging
import traceback
from enum import Enum
from typing import Any, Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from src.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable codes carried by collaborator failures."""

    ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL = "account_exists_with_different_credential"
    OBJECT_NOT_FOUND = "object_not_found"
    REQUIRES_RECENT_LOGIN = "requires_recent_login"
    EMAIL_NOT_VERIFIED = "email_not_verified"
    UPLOAD_FAILED = "upload_failed"
    MICROPHONE_DENIED = "microphone_denied"
    NOT_AUTHENTICATED = "not_authenticated"
    PROVIDER_ERROR = "provider_error"

    @property
    def http_status(self) -> int:
        """Status a ServiceError with this code gets unless told otherwise."""
        return _CODE_STATUS.get(self, status.HTTP_400_BAD_REQUEST)


_CODE_STATUS: dict[ErrorCode, int] = {
    ErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL: status.HTTP_409_CONFLICT,
    ErrorCode.OBJECT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.REQUIRES_RECENT_LOGIN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.EMAIL_NOT_VERIFIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
}


class APIError(Exception):
    """Base exception for errors returned to the client as ErrorResponse.

    Args:
        message: Text shown to the user.
        status_code: HTTP status code to return.
        error_type: Value of the response's ``error`` field.
        details: Optional per-field details.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type: str = "api_error",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Rejected input, such as an oversized or non-image upload."""

    def __init__(self, message: str = "Validation error", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_type="validation_error",
            details=details,
        )


class ServiceError(APIError):
    """Failure reported by the identity provider, a store, or the media endpoint.

    The message is the collaborator's human-readable text and is shown to
    the user verbatim; ``code`` is what callers branch on. The status
    defaults to the one the code implies.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_ERROR,
        status_code: int | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=status_code or code.http_status,
            error_type=code.value,
            details=details,
        )
        self.code = code


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Build the JSON body every error is returned with.

    Args:
        error_type: Value of the ``error`` field.
        message: Text shown to the user.
        status_code: HTTP status code.
        details: Optional per-field details.
        request_id: Optional request ID for tracing.

    Returns:
        JSONResponse: Formatted error response.
    """
    body = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Turn any exception that escaped the exception handlers into a 500.

    The stack trace is logged; the client only gets a generic message.
    """
    try:
        return await call_next(request)
    except Exception as e:
        request_id = request.headers.get("X-Request-ID")
        logger.error(
            "Unhandled exception on %s %s: %s\n%s",
            request.method,
            request.url.path,
            e,
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError raised by a route or dependency."""
    request_id = request.headers.get("X-Request-ID")
    logger.warning(
        "API error: %s - %s",
        exc.error_type,
        exc.message,
        extra={"request_id": request_id, "status_code": exc.status_code},
    )
    return create_error_response(
        error_type=exc.error_type,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=request_id,
    )


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPException (missing session, unknown route) as an ErrorResponse."""
    response = create_error_response(
        error_type="http_error",
        message=str(exc.detail),
        status_code=exc.status_code,
        request_id=request.headers.get("X-Request-ID"),
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response
