from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import os

from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables from repo root and package/.env (if present).
REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(REPO_ROOT / ".env")
load_dotenv(Path(__file__).resolve().parent / ".env")

DEFAULT_DATABASE_URL = "sqlite:///./tasklist.db"
DEFAULT_SITE_URL = "http://localhost:3000"
DEFAULT_SESSION_TTL_SECONDS = 7 * 24 * 3600


@dataclass(frozen=True)
class Settings:
    # Backend API
    database_url: str = DEFAULT_DATABASE_URL
    jwt_secret: Optional[str] = None
    jwt_audience: Optional[str] = "authenticated"
    cors_origins: List[str] = field(default_factory=lambda: [DEFAULT_SITE_URL])

    # Web front / session bridge
    backend_url: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    site_url: str = DEFAULT_SITE_URL
    session_secret: Optional[str] = None
    session_cookie_name: str = "tasklist_session"
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    cookie_samesite: str = "lax"
    cookie_secure: bool = False
    oauth_provider: str = "google"

    log_level: str = "INFO"

    def require(self, *names: str) -> None:
        """Raise ConfigurationError if any of the named settings is empty."""
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            env_names = ", ".join(_ENV_NAMES.get(name, name.upper()) for name in missing)
            raise ConfigurationError(f"Missing required configuration: {env_names}")


_ENV_NAMES = {
    "jwt_secret": "SUPABASE_JWT_SECRET",
    "supabase_url": "SUPABASE_URL",
    "supabase_anon_key": "SUPABASE_ANON_KEY",
}


def _env(name: str) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or None


def _parse_csv(value: Optional[str]) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    return None


def load_settings() -> Settings:
    """Build Settings from the process environment."""
    site_url = (_env("SITE_URL") or DEFAULT_SITE_URL).rstrip("/")

    samesite = (_env("COOKIE_SAMESITE") or "lax").lower()
    if samesite not in ("lax", "strict", "none"):
        raise ConfigurationError(f"Invalid COOKIE_SAMESITE value: {samesite}")

    cookie_secure = _parse_bool(_env("COOKIE_SECURE"))
    if cookie_secure is None:
        # Default: secure cookies when the site is served over https.
        cookie_secure = site_url.startswith("https://")

    audience = os.getenv("JWT_AUDIENCE")
    if audience is None:
        audience = "authenticated"

    backend_url = _env("BACKEND_URL")

    return Settings(
        database_url=_env("DATABASE_URL") or DEFAULT_DATABASE_URL,
        jwt_secret=_env("SUPABASE_JWT_SECRET"),
        jwt_audience=audience.strip() or None,
        cors_origins=_parse_csv(_env("CORS_ORIGINS")) or [DEFAULT_SITE_URL],
        backend_url=backend_url.rstrip("/") if backend_url else None,
        supabase_url=(_env("SUPABASE_URL") or "").rstrip("/") or None,
        supabase_anon_key=_env("SUPABASE_ANON_KEY"),
        site_url=site_url,
        session_secret=_env("SESSION_SECRET"),
        session_cookie_name=_env("SESSION_COOKIE_NAME") or "tasklist_session",
        session_ttl_seconds=int(_env("SESSION_TTL_SECONDS") or DEFAULT_SESSION_TTL_SECONDS),
        cookie_samesite=samesite,
        cookie_secure=cookie_secure,
        oauth_provider=_env("OAUTH_PROVIDER") or "google",
        log_level=(_env("LOG_LEVEL") or "INFO").upper(),
    )
