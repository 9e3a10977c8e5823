"""
Shared pytest fixtures.

The backend runs against in-memory SQLite; the identity provider is replaced by
FakeIdentity and the backend seen by the web front is either an
httpx.MockTransport handler or the real backend app over httpx.ASGITransport.
"""

import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tasklist.config import Settings  # noqa: E402
from tasklist.errors import IdentityError  # noqa: E402
from tasklist.main import create_app as create_backend_app  # noqa: E402
from tasklist.security import create_access_token  # noqa: E402
from tasklist.store import TaskStore  # noqa: E402
from tasklist.web.identity import AuthSession  # noqa: E402
from tasklist.web.main import create_app as create_web_app  # noqa: E402
from tasklist.web.session import SessionCodec  # noqa: E402

JWT_SECRET = "test-jwt-secret"
SESSION_SECRET = "test-session-secret"
SITE_URL = "http://testserver"
BACKEND_URL = "http://backend"


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        jwt_secret=JWT_SECRET,
        backend_url=BACKEND_URL,
        supabase_url="http://identity",
        supabase_anon_key="anon-key",
        site_url=SITE_URL,
        session_secret=SESSION_SECRET,
    )
    values.update(overrides)
    return Settings(**values)


def auth_headers(subject: str, **kwargs) -> dict:
    token = create_access_token(subject, JWT_SECRET, **kwargs)
    return {"Authorization": f"Bearer {token}"}


def make_session(
    user_id: str = "user-1",
    expires_in: int = 3600,
    refresh_token: Optional[str] = "refresh-1",
) -> AuthSession:
    return AuthSession(
        access_token=create_access_token(user_id, JWT_SECRET),
        refresh_token=refresh_token,
        expires_at=int(time.time()) + expires_in,
        user_id=user_id,
        email=f"{user_id}@example.com",
    )


def session_cookie(settings: Settings, session: AuthSession) -> dict:
    codec = SessionCodec(settings.session_secret, settings.session_ttl_seconds)
    return {settings.session_cookie_name: codec.dumps(session)}


class FakeIdentity:
    """Stands in for the identity provider; records every call."""

    def __init__(self):
        self.exchanged: List[tuple] = []
        self.refreshed: List[str] = []
        self.signed_out: List[str] = []
        self.exchange_result: Optional[AuthSession] = None
        self.refresh_result: Optional[AuthSession] = None

    def authorize_url(self, provider: str, redirect_to: str, code_challenge: str) -> str:
        params = httpx.QueryParams(
            {"provider": provider, "redirect_to": redirect_to, "code_challenge": code_challenge}
        )
        return f"http://identity/auth/v1/authorize?{params}"

    async def exchange_code(self, code: str, code_verifier: str) -> AuthSession:
        self.exchanged.append((code, code_verifier))
        if self.exchange_result is None:
            raise IdentityError("Token request failed (status=400)")
        return self.exchange_result

    async def refresh(self, refresh_token: str) -> AuthSession:
        self.refreshed.append(refresh_token)
        if self.refresh_result is None:
            raise IdentityError("Token request failed (status=400)")
        return self.refresh_result

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)


class RecordingBackend:
    """httpx.MockTransport handler that records requests and replays a canned response."""

    def __init__(self, responder: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.requests: List[httpx.Request] = []
        self.bodies: List[bytes] = []
        self.responder = responder or (lambda request: httpx.Response(200, json=[]))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(request.content)
        return self.responder(request)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> TaskStore:
    store = TaskStore.from_url("sqlite://")
    store.create_tables()
    return store


@pytest.fixture
def backend_app(settings, store):
    return create_backend_app(settings, store=store)


@pytest.fixture
def backend_client(backend_app) -> TestClient:
    return TestClient(backend_app)


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def recording_backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def make_web_client(settings, identity, recording_backend):
    """Build a TestClient for the web front wired to ``recording_backend``."""

    def _make(cookies: Optional[dict] = None, app_settings: Optional[Settings] = None) -> TestClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_backend))
        app = create_web_app(app_settings or settings, identity=identity, http_client=http_client)
        return TestClient(app, cookies=cookies)

    return _make


def parse_set_cookie(header: str) -> tuple:
    """Split a Set-Cookie header into (name, value, {attribute: value})."""
    first, *rest = [part.strip() for part in header.split(";")]
    name, _, value = first.partition("=")
    attrs = {}
    for part in rest:
        key, _, val = part.partition("=")
        attrs[key.lower()] = val
    return name, value, attrs
