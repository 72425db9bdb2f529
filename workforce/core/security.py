from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from workforce.core.settings import get_signing_secret, load_settings

ALGORITHM = "HS256"
DOCUMENT_VIEW_PURPOSE = "document_view"


def create_access_token(user_id: int, company_id: int, role: str, *, expires_minutes: int | None = None) -> str:
    if expires_minutes is None:
        expires_minutes = load_settings().access_token_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = {
        "sub": str(user_id),
        "company_id": company_id,
        "role": role,
        "exp": expire,
    }
    return jwt.encode(to_encode, get_signing_secret(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode a bearer token; raises ``JWTError`` when invalid or expired."""

    payload = jwt.decode(token, get_signing_secret(), algorithms=[ALGORITHM])
    if "sub" not in payload or "company_id" not in payload or "role" not in payload:
        raise JWTError("token is missing required claims")
    return payload


def create_document_url_token(document_id: int, user_id: int, *, ttl_seconds: int | None = None) -> str:
    """Short-lived token embedded in view/download URLs instead of the bearer token."""

    if ttl_seconds is None:
        ttl_seconds = load_settings().signed_url_ttl_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
    to_encode = {
        "doc": document_id,
        "sub": str(user_id),
        "purpose": DOCUMENT_VIEW_PURPOSE,
        "exp": expire,
    }
    return jwt.encode(to_encode, get_signing_secret(), algorithm=ALGORITHM)


def verify_document_url_token(token: str, document_id: int) -> dict:
    payload = jwt.decode(token, get_signing_secret(), algorithms=[ALGORITHM])
    if payload.get("purpose") != DOCUMENT_VIEW_PURPOSE or payload.get("doc") != document_id:
        raise JWTError("signature does not match this document")
    return payload
