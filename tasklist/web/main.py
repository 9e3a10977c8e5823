import logging
from typing import Optional

import httpx
from fastapi import FastAPI

from ..config import Settings, load_settings
from ..errors import register_exception_handlers
from .backend import BackendClient
from .identity import IdentityProvider
from .routers import auth, pages, proxy
from .session import SessionCodec

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    identity: Optional[IdentityProvider] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Build the web front.

    ``http_client`` is shared by the identity-provider client and the backend
    client; when it is not passed in, the app creates one and closes it on
    shutdown.
    """
    settings = settings or load_settings()
    settings.require("session_secret")
    if identity is None:
        settings.require("supabase_url", "supabase_anon_key")

    owns_client = http_client is None
    http_client = http_client or httpx.AsyncClient()
    identity = identity or IdentityProvider(settings.supabase_url, settings.supabase_anon_key, http_client)

    app = FastAPI(
        title="Tasklist Web",
        description="Todo list pages, OAuth callback and session bridge to the Tasklist API",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.identity = identity
    app.state.codec = SessionCodec(settings.session_secret, settings.session_ttl_seconds)
    app.state.backend = BackendClient(settings.backend_url, http_client)

    register_exception_handlers(app)

    app.include_router(pages.router, tags=["pages"])
    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(proxy.router, prefix="/api/proxy", tags=["proxy"])

    if not settings.backend_url:
        logger.warning("BACKEND_URL is not configured; proxy requests will fail")

    @app.on_event("shutdown")
    async def on_shutdown():
        if owns_client:
            await http_client.aclose()

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    return app
