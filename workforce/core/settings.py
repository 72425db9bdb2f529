"""Process configuration read from the environment."""
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]

_signing_secret: str | None = None


@dataclass(slots=True)
class Settings:
    app_env: str = "development"
    documents_root: Path = Path("storage")
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    access_token_expire_minutes: int = 60
    signed_url_ttl_seconds: int = 300
    max_upload_bytes: int = 10 * 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def load_settings() -> Settings:
    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    root = os.getenv("DOCUMENTS_ROOT")
    return Settings(
        app_env=(os.getenv("APP_ENV") or "development").strip().lower(),
        documents_root=Path(root).expanduser().resolve() if root else Path.cwd() / "storage",
        cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
        access_token_expire_minutes=_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60),
        signed_url_ttl_seconds=_int_env("SIGNED_URL_TTL_SECONDS", 300),
        max_upload_bytes=_int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    )


def resolve_signing_secret(settings: Settings | None = None) -> str:
    """Return the token signing secret, failing hard in production.

    Outside production a random secret is generated for the lifetime of the
    process; every token issued before a restart becomes invalid.
    """

    settings = settings or load_settings()
    secret = os.getenv("JWT_SECRET", "").strip()
    if secret:
        return secret
    if settings.is_production:
        raise RuntimeError("JWT_SECRET is required when APP_ENV=production")

    secret = f"dev-secret-{secrets.token_urlsafe(32)}"
    logger.warning("JWT_SECRET not set - using a random development secret (sessions reset on restart)")
    return secret


def get_signing_secret() -> str:
    """Resolve the signing secret once and share it with every module."""

    global _signing_secret
    if _signing_secret is None:
        _signing_secret = resolve_signing_secret()
    return _signing_secret


def reset_signing_secret() -> None:
    """Forget the cached secret (used in tests)."""

    global _signing_secret
    _signing_secret = None
