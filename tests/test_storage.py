import io
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.core.settings import load_settings
from workforce.core.storage import delete_artifact, resolve_artifact, save_artifact


def test_artifacts_are_stored_under_the_configured_root(tmp_path):
    relative, size = save_artifact(3, "../Nomina Marzo.pdf", io.BytesIO(b"%PDF-1.4"))

    stored = resolve_artifact(relative)
    assert size == 8
    assert stored.is_relative_to(load_settings().documents_root)
    assert stored.parent == (tmp_path / "storage" / "company-3" / "documents").resolve()
    assert stored.name.endswith("-Nomina Marzo.pdf")


def test_paths_outside_the_root_are_rejected(tmp_path):
    sibling = tmp_path / "storage2" / "secret.pdf"
    sibling.parent.mkdir()
    sibling.write_bytes(b"x")

    with pytest.raises(ValueError):
        resolve_artifact("../storage2/secret.pdf")
    with pytest.raises(ValueError):
        resolve_artifact("../../etc/passwd")
    assert delete_artifact("../storage2/secret.pdf") is False
    assert sibling.exists()
