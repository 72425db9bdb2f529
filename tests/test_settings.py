import sys
from pathlib import Path

import pytest
from jose import JWTError

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.core.security import (
    create_access_token,
    create_document_url_token,
    decode_access_token,
    verify_document_url_token,
)
from workforce.core.settings import (
    get_signing_secret,
    load_settings,
    reset_signing_secret,
    resolve_signing_secret,
)


def test_production_refuses_to_start_without_secret(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.setenv("APP_ENV", "production")

    with pytest.raises(RuntimeError):
        resolve_signing_secret()


def test_development_generates_a_process_secret(monkeypatch, caplog):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    reset_signing_secret()

    first = get_signing_secret()
    second = get_signing_secret()

    assert first.startswith("dev-secret-")
    assert first == second
    assert "JWT_SECRET not set" in caplog.text
    assert first not in caplog.text
    assert "dev-secret-" not in caplog.text


def test_explicit_secret_is_used(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "  configured  ")
    assert resolve_signing_secret() == "configured"


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("API_CORS_ORIGINS", "https://rrhh.example.com, https://admin.example.com")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "not-a-number")
    monkeypatch.setenv("SIGNED_URL_TTL_SECONDS", "60")
    monkeypatch.setenv("DOCUMENTS_ROOT", str(tmp_path))

    settings = load_settings()

    assert settings.cors_origins == ["https://rrhh.example.com", "https://admin.example.com"]
    assert settings.max_upload_bytes == 10 * 1024 * 1024
    assert settings.signed_url_ttl_seconds == 60
    assert settings.documents_root == tmp_path.resolve()
    assert settings.is_production is False


def test_access_token_round_trip():
    token = create_access_token(7, 1, "manager")
    payload = decode_access_token(token)

    assert payload["sub"] == "7"
    assert payload["company_id"] == 1
    assert payload["role"] == "manager"


def test_token_signed_with_another_secret_is_rejected(monkeypatch):
    token = create_access_token(7, 1, "admin")
    monkeypatch.setenv("JWT_SECRET", "rotated")
    reset_signing_secret()

    with pytest.raises(JWTError):
        decode_access_token(token)


def test_document_url_token_is_bound_to_one_document():
    token = create_document_url_token(12, user_id=3)

    assert verify_document_url_token(token, 12)["sub"] == "3"
    with pytest.raises(JWTError):
        verify_document_url_token(token, 13)
    with pytest.raises(JWTError):
        decode_access_token(token)
