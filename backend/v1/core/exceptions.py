import uuid
from datetime import UTC, datetime
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from backend.config.logging import add_request_context, get_logger
from backend.v1.infra.jobs.errors import JobStoreError

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class SaaSCoreException(Exception):
    """Base exception for API errors; carries the HTTP status it maps to."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class BadRequestError(SaaSCoreException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(SaaSCoreException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(SaaSCoreException):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(SaaSCoreException):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ServiceUnavailableError(SaaSCoreException):
    """The job store could not serve the request."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Job store unavailable"


def create_error_response(
    status_code: int,
    message: str,
    details: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Create standardized error response envelope."""
    return {
        "ok": False,
        "error": {"message": message, "code": status_code, "details": details or {}},
        "request_id": request_id,
        "timestamp": datetime.now(UTC).isoformat(),
    }


def create_success_response(
    data: Any, message: str | None = None, request_id: str | None = None
) -> dict[str, Any]:
    """Create standardized success response envelope."""
    return {
        "ok": True,
        "data": data,
        "message": message,
        "request_id": request_id,
        "timestamp": datetime.now(UTC).isoformat(),
    }


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error_json(
    request: Request,
    status_code: int,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(status_code, message, details, _request_id(request)),
        headers=headers,
    )


async def saas_core_exception_handler(
    request: Request, exc: SaaSCoreException
) -> JSONResponse:
    """Render an application exception into the error envelope."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Application exception",
        exception=exc.__class__.__name__,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )
    return _error_json(request, exc.status_code, exc.message, exc.details)


async def job_store_exception_handler(request: Request, exc: JobStoreError) -> JSONResponse:
    """A queue read or write failed: report the store as unavailable."""
    logger.error("Job store error", error=str(exc), path=request.url.path)
    return _error_json(
        request,
        ServiceUnavailableError.status_code,
        ServiceUnavailableError.default_message,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("HTTP exception", status_code=exc.status_code, detail=exc.detail)
    return _error_json(
        request,
        exc.status_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        exception=exc.__class__.__name__,
        message=str(exc),
        exc_info=True,
    )
    return _error_json(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to the request and its log lines.

    An inbound X-Request-ID is reused so operator tooling can trace a call
    end to end; otherwise a fresh one is generated.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        add_request_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
