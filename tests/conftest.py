import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.application import reset_application_state
from workforce.core.settings import reset_signing_secret
from workforce.infrastructure import get_broadcaster


@pytest.fixture(autouse=True)
def reset_state(tmp_path, monkeypatch):
    monkeypatch.setenv("DOCUMENTS_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.delenv("APP_ENV", raising=False)
    reset_signing_secret()
    reset_application_state()
    get_broadcaster().reset()
    yield
    reset_application_state()
    get_broadcaster().reset()
    reset_signing_secret()
