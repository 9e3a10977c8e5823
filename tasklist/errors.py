import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TaskListError(Exception):
    """Base error carrying the HTTP status it is reported with."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"
    headers = None

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class Unauthorized(TaskListError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class BearerRequired(Unauthorized):
    message = "Not authenticated"
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(TaskListError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class TokenError(Forbidden):
    message = "Could not validate credentials"


class InvalidSignature(TokenError):
    message = "Invalid token signature"


class TokenExpired(TokenError):
    message = "Token has expired"


class MalformedToken(TokenError):
    message = "Malformed token"


class NotFound(TaskListError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class ValidationError(TaskListError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class UpstreamError(TaskListError):
    message = "Upstream request failed"


class ProxyRequestFailed(UpstreamError):
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Proxy request failed"


class IdentityError(UpstreamError):
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Identity provider request failed"


class ConfigurationError(TaskListError):
    message = "Configuration error"


async def _handle_task_list_error(request: Request, exc: TaskListError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=exc.headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskListError, _handle_task_list_error)
