import logging

from fastapi import APIRouter, Request, Response, status

from ...errors import ConfigurationError, Unauthorized
from ..backend import BODYLESS_METHODS
from ..deps import get_auth_state, persist_refreshed_session

logger = logging.getLogger(__name__)

router = APIRouter()

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]


@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def proxy(path: str, request: Request):
    """Forward a same-origin request to the backend as a bearer-authenticated one.

    The session cookie is only readable here, server-side; the backend only
    accepts ``Authorization: Bearer``. Backend status and body pass through
    unchanged, a 204 carries no body.
    """
    backend = request.app.state.backend
    if not backend.configured:
        logger.error("Proxy Error: BACKEND_URL is not configured.")
        raise ConfigurationError("Proxy configuration error")

    auth = await get_auth_state(request)
    if auth.session is None:
        logger.warning("Proxy: No valid session found.")
        raise Unauthorized()

    body = None
    if request.method not in BODYLESS_METHODS:
        body = await request.body()

    logger.info("Proxying request: %s /%s", request.method, path)
    upstream = await backend.forward(
        request.method,
        path,
        auth.session.access_token,
        query=request.url.query,
        body=body,
        content_type=request.headers.get("content-type"),
    )

    if upstream.is_error:
        logger.error("Proxy: Backend error %s: %s", upstream.status_code, upstream.text)

    if upstream.status_code == status.HTTP_204_NO_CONTENT:
        response = Response(status_code=status.HTTP_204_NO_CONTENT)
    else:
        response = Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
        )
    persist_refreshed_session(request, response, auth)
    return response
