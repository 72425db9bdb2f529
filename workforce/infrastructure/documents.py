"""Infrastructure layer for document persistence."""
from __future__ import annotations

from typing import Protocol

from workforce.domain import Artifact, Document


class DocumentRepository(Protocol):
    """Persistence contract for artifacts and per-recipient documents."""

    def add_artifact(self, artifact: Artifact) -> None: ...

    def get_artifact(self, artifact_id: str) -> Artifact | None: ...

    def remove_artifact(self, artifact_id: str) -> Artifact | None: ...

    def next_document_id(self) -> int: ...

    def add_document(self, document: Document) -> None: ...

    def get_document(self, document_id: int) -> Document | None: ...

    def delete_document(self, document_id: int) -> Document | None: ...

    def list_by_owner(self, user_id: int) -> list[Document]: ...

    def list_by_company(self, company_id: int) -> list[Document]: ...

    def count_artifact_references(self, artifact_id: str) -> int: ...

    def reset(self) -> None: ...


class InMemoryDocumentRepository:
    """Simple in-memory repository for fast iteration and tests."""

    def __init__(self) -> None:
        self._artifacts: dict[str, Artifact] = {}
        self._documents: dict[int, Document] = {}
        self._document_counter = 0

    # ------------------------------------------------------------------
    # artifacts
    # ------------------------------------------------------------------
    def add_artifact(self, artifact: Artifact) -> None:
        self._artifacts[artifact.artifact_id] = artifact

    def get_artifact(self, artifact_id: str) -> Artifact | None:
        return self._artifacts.get(artifact_id)

    def remove_artifact(self, artifact_id: str) -> Artifact | None:
        return self._artifacts.pop(artifact_id, None)

    def count_artifact_references(self, artifact_id: str) -> int:
        return sum(1 for document in self._documents.values() if document.artifact_id == artifact_id)

    # ------------------------------------------------------------------
    # documents
    # ------------------------------------------------------------------
    def next_document_id(self) -> int:
        self._document_counter += 1
        return self._document_counter

    def add_document(self, document: Document) -> None:
        self._documents[document.id] = document

    def get_document(self, document_id: int) -> Document | None:
        return self._documents.get(document_id)

    def delete_document(self, document_id: int) -> Document | None:
        return self._documents.pop(document_id, None)

    def list_by_owner(self, user_id: int) -> list[Document]:
        documents = [doc for doc in self._documents.values() if doc.owner_user_id == user_id]
        documents.sort(key=lambda doc: doc.created_at, reverse=True)
        return documents

    def list_by_company(self, company_id: int) -> list[Document]:
        documents = [doc for doc in self._documents.values() if doc.company_id == company_id]
        documents.sort(key=lambda doc: doc.created_at, reverse=True)
        return documents

    def reset(self) -> None:
        self._artifacts.clear()
        self._documents.clear()
        self._document_counter = 0
