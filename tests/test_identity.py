import asyncio
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from tasklist.errors import IdentityError
from tasklist.web.identity import IdentityProvider, code_challenge, new_code_verifier

TOKEN_RESPONSE = {
    "access_token": "access-1",
    "token_type": "bearer",
    "expires_in": 3600,
    "expires_at": 1900000000,
    "refresh_token": "refresh-1",
    "user": {"id": "user-1", "email": "user-1@example.com"},
}


def _provider(handler) -> IdentityProvider:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return IdentityProvider("http://identity/", "anon-key", http_client)


def test_code_challenge_matches_rfc7636_example():
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

    assert code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_new_code_verifier_is_long_enough_and_random():
    first, second = new_code_verifier(), new_code_verifier()

    assert len(first) >= 43
    assert first != second


def test_authorize_url():
    provider = _provider(lambda request: httpx.Response(500))

    url = urlparse(provider.authorize_url("google", "http://site/auth/callback?next=%2F", "challenge"))
    params = parse_qs(url.query)

    assert url.path == "/auth/v1/authorize"
    assert params["provider"] == ["google"]
    assert params["redirect_to"] == ["http://site/auth/callback?next=%2F"]
    assert params["code_challenge"] == ["challenge"]
    assert params["code_challenge_method"] == ["s256"]


def test_exchange_code():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=TOKEN_RESPONSE)

    session = asyncio.run(_provider(handler).exchange_code("code-1", "verifier-1"))

    assert session.access_token == "access-1"
    assert session.refresh_token == "refresh-1"
    assert session.expires_at == 1900000000
    assert session.user_id == "user-1"
    request = seen[0]
    assert request.url.path == "/auth/v1/token"
    assert request.url.params["grant_type"] == "pkce"
    assert request.headers["apikey"] == "anon-key"
    assert json.loads(request.content) == {"auth_code": "code-1", "code_verifier": "verifier-1"}


def test_refresh_uses_refresh_grant():
    seen = []

    def handler(request):
        seen.append(request)
        body = dict(TOKEN_RESPONSE)
        del body["expires_at"]
        return httpx.Response(200, json=body)

    session = asyncio.run(_provider(handler).refresh("refresh-1"))

    assert seen[0].url.params["grant_type"] == "refresh_token"
    assert json.loads(seen[0].content) == {"refresh_token": "refresh-1"}
    # expires_at falls back to now + expires_in
    assert session.expires_at > 1_000_000_000


def test_rejected_exchange_raises():
    provider = _provider(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

    with pytest.raises(IdentityError):
        asyncio.run(provider.exchange_code("bad", "verifier"))


def test_unreachable_provider_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(IdentityError) as excinfo:
        asyncio.run(_provider(handler).exchange_code("code", "verifier"))

    assert excinfo.value.message == "Identity provider request failed"


def test_malformed_token_response_raises():
    provider = _provider(lambda request: httpx.Response(200, json={"access_token": "x"}))

    with pytest.raises(IdentityError):
        asyncio.run(provider.exchange_code("code", "verifier"))


def test_sign_out_swallows_failures():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(500)

    asyncio.run(_provider(handler).sign_out("access-1"))

    assert seen[0].url.path == "/auth/v1/logout"
    assert seen[0].headers["authorization"] == "Bearer access-1"
