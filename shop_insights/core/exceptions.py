import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# Substrings that identify an exhausted connection pool.
TRANSIENT_ERROR_MARKERS = (
    "connection pool",
    "QueuePool limit",
    "Timed out fetching a new connection",
    "P2024",
)

# Substrings that identify a database server that cannot be reached at all.
UNREACHABLE_ERROR_MARKERS = (
    "Can't reach database server",
    "getaddrinfo",
    "Name or service not known",
    "Connection refused",
    "could not connect to server",
)


class AppError(Exception):
    """Base class for errors that are rendered as a JSON ``{"error": ...}`` body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class SignatureError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class RemoteFetchError(AppError):
    """A non-success response from the remote commerce API."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class TransientInfraError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class UnreachableDependencyError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def is_transient_error(exc: BaseException) -> bool:
    if isinstance(exc, TransientInfraError):
        return True
    message = str(exc)
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


def is_unreachable_error(exc: BaseException) -> bool:
    if isinstance(exc, (UnreachableDependencyError, ConnectionRefusedError)):
        return True
    message = str(exc)
    return any(marker in message for marker in UNREACHABLE_ERROR_MARKERS)


def classify_exception(exc: Exception) -> AppError:
    """Map an arbitrary exception that reached the request boundary to an AppError."""
    if isinstance(exc, AppError):
        return exc
    if is_unreachable_error(exc):
        return UnreachableDependencyError("Database is unreachable. Please try again later.")
    if is_transient_error(exc):
        return TransientInfraError("Database is busy. Please try again later.")
    return AppError(str(exc) or "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        error = ValidationError(f"Invalid request: {details}")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        error = classify_exception(exc)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
