import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from .errors import InvalidSignature, MalformedToken, TokenExpired

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the credential from an ``Authorization: Bearer ...`` header."""
    if not authorization:
        return None
    scheme, _, credential = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credential.strip() or None


def verify_token(token: str, secret: str, audience: Optional[str] = None) -> dict:
    """Verify an HS256 token against the shared secret and return its claims.

    Raises MalformedToken, TokenExpired or InvalidSignature.
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as exc:
        logger.warning("JWT verification error: %s", exc)
        raise MalformedToken() from exc
    if header.get("alg") != ALGORITHM:
        logger.warning("JWT verification error: unexpected algorithm %r", header.get("alg"))
        raise InvalidSignature()

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except ExpiredSignatureError as exc:
        logger.warning("JWT verification error: %s", exc)
        raise TokenExpired() from exc
    except JWTError as exc:
        logger.warning("JWT verification error: %s", exc)
        raise InvalidSignature() from exc

    if not claims.get("sub"):
        logger.warning("JWT verification error: token has no subject")
        raise MalformedToken("Token has no subject")

    logger.debug("Authenticated user ID: %s", claims["sub"])
    return claims


def create_access_token(
    subject: str,
    secret: str,
    expires_delta: Optional[timedelta] = None,
    audience: Optional[str] = "authenticated",
    **extra_claims,
) -> str:
    """Create a token shaped like the ones the identity provider issues."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "role": "authenticated",
        **extra_claims,
    }
    if audience:
        to_encode["aud"] = audience
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)
