from typing import NamedTuple, Optional

from fastapi import Request, Response

from .identity import AuthSession
from .session import resolve_session, session_cookie_kwargs


class AuthState(NamedTuple):
    session: Optional[AuthSession]
    refreshed: bool


async def get_auth_state(request: Request) -> AuthState:
    """Resolve the session cookie on this request, refreshing it if needed."""
    state = request.app.state
    cookie_value = request.cookies.get(state.settings.session_cookie_name)
    session, refreshed = await resolve_session(cookie_value, state.codec, state.identity)
    return AuthState(session=session, refreshed=refreshed)


def persist_refreshed_session(request: Request, response: Response, auth: AuthState) -> None:
    """Write a refreshed session back to the browser."""
    if auth.session is None or not auth.refreshed:
        return
    state = request.app.state
    response.set_cookie(**session_cookie_kwargs(state.settings, state.codec.dumps(auth.session)))
