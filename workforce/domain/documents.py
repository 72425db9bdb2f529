"""Document entities: stored artifacts, per-recipient documents and their status."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Artifact:
    """One physical file in storage, possibly shared by many documents."""

    artifact_id: str
    company_id: int
    path: str
    file_size: int
    mime_type: str | None = None


@dataclass(slots=True)
class RecipientStatus:
    is_viewed: bool = False
    is_accepted: bool = False
    viewed_at: datetime | None = None
    accepted_at: datetime | None = None
    signed_at: datetime | None = None
    digital_signature: str | None = None


@dataclass(slots=True)
class Document:
    id: int
    company_id: int
    owner_user_id: int | None
    artifact_id: str
    file_name: str
    original_name: str
    file_size: int
    uploaded_by: int
    document_type: str = "otros"
    requires_signature: bool = False
    mime_type: str | None = None
    batch_id: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    status: RecipientStatus = field(default_factory=RecipientStatus)

    @property
    def is_circular(self) -> bool:
        return self.batch_id is not None

    @property
    def is_complete(self) -> bool:
        if self.requires_signature:
            return self.status.is_accepted
        return self.status.is_viewed


@dataclass(slots=True)
class CircularBatch:
    """Identifiers the sender keeps in order to undo a circular in one go."""

    batch_id: str
    artifact_id: str
    document_ids: list[int]


@dataclass(slots=True)
class BatchUndoResult:
    deleted: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.deleted) + len(self.failed)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed) and bool(self.deleted)
