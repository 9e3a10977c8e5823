import logging

from fastapi import APIRouter, Depends, Request

from ..errors import BearerRequired
from ..security import extract_bearer_token, verify_token

logger = logging.getLogger(__name__)

router = APIRouter()


def get_claims(request: Request) -> dict:
    """Verified claims of the bearer credential on this request.

    401 when no credential is present, 403 when it fails verification.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        raise BearerRequired()

    settings = request.app.state.settings
    claims = verify_token(token, settings.jwt_secret, audience=settings.jwt_audience)
    logger.info("Authenticated user ID: %s", claims["sub"])
    return claims


def get_current_subject(claims: dict = Depends(get_claims)) -> str:
    """Subject identifier used to scope every task query."""
    return str(claims["sub"])


@router.get("/me")
def read_current_user(claims: dict = Depends(get_claims)):
    """Get current user information from the verified token."""
    return {
        "id": str(claims["sub"]),
        "email": claims.get("email"),
        "role": claims.get("role"),
    }
