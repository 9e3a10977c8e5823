"""
Identity-provider integration (Supabase-compatible GoTrue REST API).

The provider owns users, runs the OAuth dance with the upstream social login
and issues the HS256 access tokens the backend verifies. This module covers
the calls the web front needs: building the authorize URL, exchanging an
authorization code (PKCE), refreshing and revoking a session.
"""

import base64
import hashlib
import logging
import os
import time
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from ..errors import IdentityError

logger = logging.getLogger(__name__)


class AuthSession(BaseModel):
    """Session issued by the identity provider."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: int
    user_id: str
    email: Optional[str] = None

    def expires_within(self, seconds: int, now: Optional[float] = None) -> bool:
        return self.expires_at <= (now if now is not None else time.time()) + seconds


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def new_code_verifier() -> str:
    # 32 random bytes -> 43 base64url chars, a valid PKCE verifier
    return b64url(os.urandom(32))


def code_challenge(verifier: str) -> str:
    return b64url(hashlib.sha256(verifier.encode("ascii")).digest())


class IdentityProvider:
    """Thin async client for the provider's auth endpoints."""

    def __init__(self, url: str, anon_key: str, http_client: httpx.AsyncClient):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.http = http_client

    def _headers(self, access_token: Optional[str] = None) -> dict:
        headers = {"apikey": self.anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def authorize_url(self, provider: str, redirect_to: str, code_challenge: str) -> str:
        params = {
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
        }
        return f"{self.url}/auth/v1/authorize?{urlencode(params)}"

    async def _token_request(self, grant_type: str, payload: dict) -> AuthSession:
        try:
            response = await self.http.post(
                f"{self.url}/auth/v1/token",
                params={"grant_type": grant_type},
                json=payload,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable (%s): %s", grant_type, exc)
            raise IdentityError() from exc

        if response.status_code >= 400:
            # Avoid leaking sensitive info; include minimal context.
            logger.warning("Identity provider rejected %s grant (status=%s)", grant_type, response.status_code)
            raise IdentityError(f"Token request failed (status={response.status_code})")

        try:
            return session_from_token_response(response.json())
        except (ValueError, KeyError, TypeError) as exc:
            raise IdentityError("Invalid token response") from exc

    async def exchange_code(self, code: str, code_verifier: str) -> AuthSession:
        """Exchange an authorization code for a session."""
        return await self._token_request("pkce", {"auth_code": code, "code_verifier": code_verifier})

    async def refresh(self, refresh_token: str) -> AuthSession:
        return await self._token_request("refresh_token", {"refresh_token": refresh_token})

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session at the provider. Failures are logged, not raised."""
        try:
            response = await self.http.post(
                f"{self.url}/auth/v1/logout",
                headers=self._headers(access_token),
            )
            if response.status_code >= 400:
                logger.warning("Identity provider sign-out returned %s", response.status_code)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider sign-out failed: %s", exc)


def session_from_token_response(data: dict) -> AuthSession:
    if not isinstance(data, dict):
        raise ValueError("Token response is not an object")
    expires_at = data.get("expires_at")
    if expires_at is None:
        expires_at = int(time.time()) + int(data.get("expires_in") or 3600)
    user = data.get("user") or {}
    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_at=int(expires_at),
        user_id=str(user["id"]),
        email=user.get("email"),
    )
