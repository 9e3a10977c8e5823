import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Query, Request
from fastapi.responses import RedirectResponse

from ...errors import IdentityError
from ..identity import code_challenge, new_code_verifier
from ..session import (
    VERIFIER_COOKIE_NAME,
    clear_cookie_kwargs,
    session_cookie_kwargs,
    verifier_cookie_kwargs,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def sanitize_next_path(next_path: Optional[str]) -> str:
    """
    Keep redirects on this site: `next` becomes a path starting with a single `/`.
    """
    p = (next_path or "").strip().replace("\r", "").replace("\n", "")
    if not p:
        return "/"
    if not p.startswith("/"):
        p = "/" + p
    # Disallow scheme-relative: `//evil.com`
    if p.startswith("//"):
        return "/"
    return p


def _auth_error_redirect(site_url: str, message: str) -> RedirectResponse:
    resp = RedirectResponse(url=f"{site_url}/auth-error?{urlencode({'message': message})}", status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/login")
async def login(request: Request, next_path: str = Query("/", alias="next")):
    """Start the OAuth flow at the identity provider (PKCE)."""
    settings = request.app.state.settings
    identity = request.app.state.identity

    verifier = new_code_verifier()
    safe_next = sanitize_next_path(next_path)
    redirect_to = f"{settings.site_url}/auth/callback?{urlencode({'next': safe_next})}"
    url = identity.authorize_url(settings.oauth_provider, redirect_to, code_challenge(verifier))

    resp = RedirectResponse(url=url, status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**verifier_cookie_kwargs(settings, verifier))
    return resp


@router.get("/callback")
async def callback(
    request: Request,
    code: Optional[str] = None,
    next_path: str = Query("/", alias="next"),
):
    """Exchange the authorization code for a session and store it as a cookie.

    Any failure redirects to the error page; the user has to start the login
    again.
    """
    settings = request.app.state.settings
    identity = request.app.state.identity

    if not code:
        logger.warning("Auth callback called without a code parameter.")
        return _auth_error_redirect(settings.site_url, "Authorization code missing")

    verifier = request.cookies.get(VERIFIER_COOKIE_NAME)
    if not verifier:
        logger.warning("Auth callback called without a PKCE verifier cookie.")
        return _auth_error_redirect(settings.site_url, "Could not authenticate user")

    try:
        session = await identity.exchange_code(code, verifier)
    except IdentityError as exc:
        logger.error("Auth callback error exchanging code: %s", exc.message)
        return _auth_error_redirect(settings.site_url, "Could not authenticate user")

    redirect_path = sanitize_next_path(next_path)
    logger.info("Auth callback successful for user %s, redirecting to: %s", session.user_id, redirect_path)

    resp = RedirectResponse(url=f"{settings.site_url}{redirect_path}", status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**session_cookie_kwargs(settings, request.app.state.codec.dumps(session)))
    resp.set_cookie(**clear_cookie_kwargs(settings, VERIFIER_COOKIE_NAME))
    return resp


@router.post("/logout")
async def logout(request: Request):
    """Sign out and clear the session cookie."""
    state = request.app.state
    session = state.codec.loads(request.cookies.get(state.settings.session_cookie_name))
    if session is not None:
        await state.identity.sign_out(session.access_token)
        logger.info("Signed out user %s", session.user_id)

    resp = RedirectResponse(url="/", status_code=303)
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**clear_cookie_kwargs(state.settings, state.settings.session_cookie_name))
    return resp
