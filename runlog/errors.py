"""
Error taxonomy for the import flow.

Core operations raise these; the HTTP layer turns them into JSON responses
through the handler installed by ``install_error_handlers``.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class RunlogError(Exception):
    """Base error with the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class AuthError(RunlogError):
    """Missing or unusable Strava credential; the user must re-run the OAuth flow."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "AUTH_ERROR"


class RemoteUnavailable(RunlogError):
    """Strava answered with a non-success status, or could not be reached."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "REMOTE_UNAVAILABLE"

    def __init__(self, detail: str, upstream_status: int | None = None):
        super().__init__(detail)
        self.upstream_status = upstream_status


class Conflict(RunlogError):
    """Resource already exists (e.g. an activity imported twice)."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class NotFound(RunlogError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}")
        self.resource = resource
        self.identifier = identifier


class ValidationError(RunlogError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"


async def runlog_error_handler(request: Request, exc: RunlogError) -> JSONResponse:
    if isinstance(exc, RemoteUnavailable):
        logger.error(
            "%s %s failed upstream (status=%s): %s",
            request.method, request.url.path, exc.upstream_status, exc.detail,
            exc_info=exc.__cause__,
        )
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.error_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RunlogError, runlog_error_handler)
