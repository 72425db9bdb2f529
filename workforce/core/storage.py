from __future__ import annotations

import shutil
import uuid
from pathlib import Path
from typing import BinaryIO

from workforce.core.settings import load_settings


def _base_root() -> Path:
    return load_settings().documents_root


def ensure_company_root(company_id: int) -> Path:
    """Ensure the company's artifact folder exists and return it."""

    root = _base_root() / f"company-{company_id}" / "documents"
    root.mkdir(parents=True, exist_ok=True)
    return root


def save_artifact(company_id: int, filename: str, source: BinaryIO) -> tuple[str, int]:
    """Persist an uploaded file once and return ``(relative path, size in bytes)``."""

    safe_name = Path(filename).name or "document"
    root = ensure_company_root(company_id)
    stored_name = f"{uuid.uuid4().hex}-{safe_name}"
    target = root / stored_name
    with target.open("wb") as buffer:
        shutil.copyfileobj(source, buffer)
    relative = target.relative_to(_base_root())
    return relative.as_posix(), target.stat().st_size


def resolve_artifact(relative_path: str) -> Path:
    base = _base_root().resolve()
    candidate = (base / Path(relative_path)).resolve()
    if not candidate.is_relative_to(base):
        raise ValueError("invalid artifact path")
    return candidate


def delete_artifact(relative_path: str) -> bool:
    try:
        path = resolve_artifact(relative_path)
    except ValueError:
        return False
    if not path.exists():
        return False
    path.unlink()
    return True
