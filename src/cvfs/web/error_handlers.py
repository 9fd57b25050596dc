import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from cvfs.errors import (
    AccessDeniedError,
    AlreadyExistsError,
    AuthenticationError,
    NotEmptyError,
    NotFoundError,
    SecurityError,
    SessionExpiredError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order, so subclasses come before their bases
USER_ERROR_STATUSES: list[tuple[type[Exception], int, str]] = [
    (SessionExpiredError, 403, "session_expired"),
    (AuthenticationError, 401, "authentication_error"),
    (SecurityError, 403, "security_error"),
    (AccessDeniedError, 403, "access_denied"),
    (NotFoundError, 404, "not_found"),
    (AlreadyExistsError, 409, "already_exists"),
    (NotEmptyError, 409, "not_empty"),
    (ValidationError, 400, "validation_error"),
]


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    for error_class, status_code, error_type in USER_ERROR_STATUSES:
        if isinstance(exc, error_class):
            return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)
    return create_json_error_response(status_code=400, message=str(exc), error_type="bad_request")


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Report malformed request bodies and parameters as 400 with the first problem."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{location}: {errors[0].get('msg', 'invalid value')}" if location else errors[0].get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return create_json_error_response(status_code=400, message=message, error_type="validation_error")


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500). Details are only exposed in debug mode."""
    logger.exception("Unexpected error: %s", exc)
    config = getattr(request.app.state, "config", None)
    message = str(exc) if config is not None and config.debug else "An unexpected error occurred."
    return create_json_error_response(status_code=500, message=message, error_type="internal_server_error")
