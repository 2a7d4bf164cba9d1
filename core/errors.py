import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.responses import error_response

logger = logging.getLogger(__name__)


class StandardError(Exception):
    """Base for every error the API reports to callers on purpose."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_SERVER_ERROR"
    default_message = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        self.message = message or self.default_message
        if code:
            self.code = code
        self.details = details
        super().__init__(self.message)


class BadRequestError(StandardError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    default_message = "Bad request"


class ValidationError(BadRequestError):
    code = "VALIDATION_ERROR"
    default_message = "Request validation failed"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None) -> None:
        super().__init__(message, details=errors)
        self.errors = errors


class UnauthorizedError(StandardError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class AuthenticationError(UnauthorizedError):
    code = "SVIX_HEADERS_MISSING"
    default_message = "Invalid request svix headers"


class ForbiddenError(StandardError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(StandardError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(StandardError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists"


class TooManyRequestsError(StandardError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "TOO_MANY_REQUESTS"
    default_message = "Too many requests"


class InternalServerError(StandardError):
    pass


class VerificationError(InternalServerError):
    code = "WEBHOOK_VERIFICATION_FAILED"
    default_message = "Webhook verification failed"


class DatabaseError(InternalServerError):
    code = "DATABASE_ERROR"
    default_message = "Database operation failed"


def format_validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", ""),
            "code": error.get("type", ""),
        }
        for error in exc.errors()
    ]


async def standard_error_handler(request: Request, exc: StandardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return error_response(request, exc.status_code, exc.message, exc.code, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(format_validation_errors(exc))
    return await standard_error_handler(request, error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "HTTP_ERROR"
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        code = "METHOD_NOT_ALLOWED"
    response = error_response(request, exc.status_code, str(exc.detail), code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    error = InternalServerError()
    return error_response(request, error.status_code, error.message, error.code)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StandardError, standard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
