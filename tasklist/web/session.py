import json
import logging
from typing import Optional, Tuple

from itsdangerous import BadData, URLSafeTimedSerializer
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..errors import IdentityError
from .identity import AuthSession, IdentityProvider

logger = logging.getLogger(__name__)

SESSION_SALT = "tasklist-session-v1"
VERIFIER_COOKIE_NAME = "tasklist_code_verifier"
VERIFIER_TTL_SECONDS = 600
REFRESH_LEEWAY_SECONDS = 60


class SessionCodec:
    """Signs and verifies the session cookie value."""

    def __init__(self, secret: str, max_age: int):
        self.serializer = URLSafeTimedSerializer(secret_key=secret, salt=SESSION_SALT)
        self.max_age = max_age

    def dumps(self, session: AuthSession) -> str:
        raw = json.dumps(session.model_dump(), separators=(",", ":"), sort_keys=True)
        return self.serializer.dumps(raw)

    def loads(self, value: Optional[str]) -> Optional[AuthSession]:
        if not value:
            return None
        try:
            raw = self.serializer.loads(value, max_age=self.max_age)
            return AuthSession.model_validate(json.loads(raw))
        # BadData covers bad signatures, expiry and undecodable payloads
        except (BadData, ValueError, TypeError, PydanticValidationError):
            return None


def _cookie_attributes(settings: Settings) -> dict:
    # SameSite=None is only honoured by browsers on Secure cookies.
    secure = settings.cookie_secure or settings.cookie_samesite == "none"
    return {
        "httponly": True,
        "secure": secure,
        "samesite": settings.cookie_samesite,
        "path": "/",
    }


def session_cookie_kwargs(settings: Settings, value: str) -> dict:
    return {
        "key": settings.session_cookie_name,
        "value": value,
        "max_age": settings.session_ttl_seconds,
        **_cookie_attributes(settings),
    }


def verifier_cookie_kwargs(settings: Settings, value: str) -> dict:
    attributes = _cookie_attributes(settings)
    # The provider redirects back cross-site; a strict cookie would not come along.
    if attributes["samesite"] == "strict":
        attributes["samesite"] = "lax"
    return {
        "key": VERIFIER_COOKIE_NAME,
        "value": value,
        "max_age": VERIFIER_TTL_SECONDS,
        **attributes,
    }


def clear_cookie_kwargs(settings: Settings, key: str) -> dict:
    return {
        "key": key,
        "value": "",
        "max_age": 0,
        **_cookie_attributes(settings),
    }


async def resolve_session(
    cookie_value: Optional[str],
    codec: SessionCodec,
    identity: IdentityProvider,
    leeway: int = REFRESH_LEEWAY_SECONDS,
) -> Tuple[Optional[AuthSession], bool]:
    """Turn a session cookie into a usable session.

    Returns ``(session, refreshed)``. A session whose access token is about to
    expire is refreshed through the identity provider; ``(None, False)`` means
    the caller is not authenticated.
    """
    session = codec.loads(cookie_value)
    if session is None:
        return None, False

    if not session.expires_within(leeway):
        return session, False

    if not session.refresh_token:
        logger.info("Session for user %s expired without a refresh token", session.user_id)
        return None, False

    try:
        refreshed = await identity.refresh(session.refresh_token)
    except IdentityError as exc:
        logger.warning("Session refresh failed for user %s: %s", session.user_id, exc.message)
        return None, False

    logger.info("Refreshed session for user %s", refreshed.user_id)
    return refreshed, True
