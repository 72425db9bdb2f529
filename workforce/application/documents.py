"""Application service for document exchange and circular distribution."""
from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import BinaryIO, Iterable

from jose import JWTError

from workforce.core import security, storage
from workforce.core.errors import NotFoundError, PermissionDenied, PreconditionFailed
from workforce.domain import (
    Artifact,
    BatchUndoResult,
    CircularBatch,
    Document,
    DomainEvent,
    EventType,
    RecipientStatus,
    SessionContext,
)
from workforce.domain.documents import utcnow
from workforce.extractors.filename import ClassificationResult, classify
from workforce.infrastructure import (
    DocumentRepository,
    EventPublisher,
    InMemoryDocumentRepository,
    get_broadcaster,
)

from .roster import RosterService, get_roster_service

logger = logging.getLogger(__name__)


class DocumentService:
    """Coordinates uploads, circulars and the per-recipient signature lifecycle."""

    def __init__(self, repository: DocumentRepository, roster: RosterService, publisher: EventPublisher) -> None:
        self._repository = repository
        self._roster = roster
        self._publisher = publisher

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _require_privileged(session: SessionContext) -> None:
        if not session.is_privileged:
            raise PermissionDenied("Solo administradores y managers pueden realizar esta acción")

    def _visible_document(self, session: SessionContext, document_id: int) -> Document:
        document = self._repository.get_document(document_id)
        if document is None or document.company_id != session.company_id:
            raise NotFoundError(f"document {document_id} not found")
        if not session.is_privileged and document.owner_user_id != session.user_id:
            raise NotFoundError(f"document {document_id} not found")
        return document

    def _store_artifact(self, company_id: int, file_name: str, source: BinaryIO, mime_type: str | None) -> Artifact:
        path, size = storage.save_artifact(company_id, file_name, source)
        artifact = Artifact(
            artifact_id=uuid.uuid4().hex,
            company_id=company_id,
            path=path,
            file_size=size,
            mime_type=mime_type,
        )
        self._repository.add_artifact(artifact)
        return artifact

    def _release_artifact(self, artifact_id: str) -> None:
        if self._repository.count_artifact_references(artifact_id) > 0:
            return
        artifact = self._repository.remove_artifact(artifact_id)
        if artifact is not None:
            storage.delete_artifact(artifact.path)

    def _new_document(
        self,
        *,
        session: SessionContext,
        owner_user_id: int | None,
        artifact: Artifact,
        file_name: str,
        original_name: str,
        document_type: str,
        requires_signature: bool,
        batch_id: str | None = None,
    ) -> Document:
        document = Document(
            id=self._repository.next_document_id(),
            company_id=session.company_id,
            owner_user_id=owner_user_id,
            artifact_id=artifact.artifact_id,
            file_name=file_name,
            original_name=original_name,
            file_size=artifact.file_size,
            mime_type=artifact.mime_type,
            uploaded_by=session.user_id,
            document_type=document_type,
            requires_signature=requires_signature,
            batch_id=batch_id,
            status=RecipientStatus(),
        )
        self._repository.add_document(document)
        return document

    # ------------------------------------------------------------------
    # classification
    # ------------------------------------------------------------------
    def analyze(self, session: SessionContext, file_names: Iterable[str]) -> list[ClassificationResult]:
        self._require_privileged(session)
        roster = self._roster.list_employees(session.company_id)
        return [classify(name, roster) for name in file_names]

    # ------------------------------------------------------------------
    # uploads
    # ------------------------------------------------------------------
    def upload_individual(
        self,
        session: SessionContext,
        *,
        file_name: str,
        source: BinaryIO,
        mime_type: str | None = None,
        target_employee_id: int | None = None,
        clean_file_name: str | None = None,
        requires_signature: bool = False,
        request_type: str | None = None,
    ) -> Document:
        """Store one file for one employee.

        Employees always upload for themselves.  Admins either name the
        target or let the filename decide; a low-confidence classification
        raises ``ClassificationAmbiguous`` before anything is written.
        """

        original_name = Path(file_name).name
        classification = classify(original_name, self._roster.list_employees(session.company_id))
        document_type = classification.document_type.value

        if not session.is_privileged:
            owner_id = session.user_id
            display_name = clean_file_name or original_name
        elif target_employee_id is not None:
            owner_id = self._roster.require_member(session.company_id, target_employee_id).id
            display_name = clean_file_name or original_name
        else:
            owner = classification.ensure_assignable()
            owner_id = owner.id
            display_name = clean_file_name or classification.suggested_name or original_name

        artifact = self._store_artifact(session.company_id, original_name, source, mime_type)
        document = self._new_document(
            session=session,
            owner_user_id=owner_id,
            artifact=artifact,
            file_name=display_name,
            original_name=original_name,
            document_type=document_type,
            requires_signature=requires_signature and session.is_privileged,
        )

        if not session.is_privileged:
            data = {"employeeName": self._roster.display_name(session.user_id), "documentId": document.id}
            if request_type:
                data["requestType"] = request_type
            self._publisher.publish(DomainEvent(EventType.DOCUMENT_UPLOADED, session.company_id, data))
        return document

    def send_circular(
        self,
        session: SessionContext,
        *,
        file_name: str,
        source: BinaryIO,
        recipient_ids: Iterable[int],
        mime_type: str | None = None,
        requires_signature: bool = False,
    ) -> CircularBatch:
        """Store the file once and give every recipient an independent document."""

        self._require_privileged(session)
        recipients = list(dict.fromkeys(int(recipient) for recipient in recipient_ids))
        if not recipients:
            raise ValueError("at least one recipient is required")
        for recipient in recipients:
            try:
                self._roster.require_member(session.company_id, recipient)
            except NotFoundError as exc:
                raise ValueError(f"unknown recipient {recipient}") from exc

        original_name = Path(file_name).name
        document_type = classify(original_name).document_type.value
        artifact = self._store_artifact(session.company_id, original_name, source, mime_type)
        batch_id = uuid.uuid4().hex

        document_ids = [
            self._new_document(
                session=session,
                owner_user_id=recipient,
                artifact=artifact,
                file_name=original_name,
                original_name=original_name,
                document_type=document_type,
                requires_signature=requires_signature,
                batch_id=batch_id,
            ).id
            for recipient in recipients
        ]
        logger.info("Circular %s sent to %s recipients (artifact %s)", batch_id, len(document_ids), artifact.artifact_id)
        return CircularBatch(batch_id=batch_id, artifact_id=artifact.artifact_id, document_ids=document_ids)

    # ------------------------------------------------------------------
    # listing & deletion
    # ------------------------------------------------------------------
    def list_documents(self, session: SessionContext) -> list[Document]:
        if session.is_privileged:
            return self._repository.list_by_company(session.company_id)
        return self._repository.list_by_owner(session.user_id)

    def get_document(self, session: SessionContext, document_id: int) -> Document:
        return self._visible_document(session, document_id)

    def delete_document(self, session: SessionContext, document_id: int) -> Document:
        self._require_privileged(session)
        document = self._visible_document(session, document_id)
        self._repository.delete_document(document.id)
        self._release_artifact(document.artifact_id)
        return document

    def undo_batch(self, session: SessionContext, document_ids: Iterable[int]) -> BatchUndoResult:
        """Delete every document of a circular; each failure is reported, none rolled back."""

        self._require_privileged(session)
        result = BatchUndoResult()
        for document_id in document_ids:
            try:
                self.delete_document(session, document_id)
            except NotFoundError as exc:
                result.failed[document_id] = str(exc)
            else:
                result.deleted.append(document_id)
        if result.failed:
            logger.warning("Undo removed %s of %s documents", len(result.deleted), result.total)
        return result

    # ------------------------------------------------------------------
    # recipient lifecycle
    # ------------------------------------------------------------------
    def mark_viewed(self, session: SessionContext, document_id: int) -> Document:
        """Flag the document as opened; previews by anyone but the recipient change nothing."""

        document = self._visible_document(session, document_id)
        if document.owner_user_id != session.user_id:
            return document
        if not document.status.is_viewed:
            document.status.is_viewed = True
            document.status.viewed_at = utcnow()
        return document

    def sign(self, session: SessionContext, document_id: int, signature: str) -> Document:
        document = self._visible_document(session, document_id)
        if document.owner_user_id != session.user_id:
            raise PreconditionFailed("Solo el destinatario puede firmar este documento")
        if not document.status.is_viewed:
            raise PreconditionFailed("Debes abrir el documento antes de firmarlo")
        if document.status.is_accepted:
            raise PreconditionFailed("El documento ya está firmado")
        if not signature:
            raise PreconditionFailed("La firma no puede estar vacía")

        now = utcnow()
        document.status.is_accepted = True
        document.status.accepted_at = now
        document.status.signed_at = now
        document.status.digital_signature = signature
        return document

    # ------------------------------------------------------------------
    # signed access
    # ------------------------------------------------------------------
    def create_view_url(self, session: SessionContext, document_id: int) -> str:
        document = self._visible_document(session, document_id)
        token = security.create_document_url_token(document.id, session.user_id)
        return f"/api/documents/{document.id}/download?sig={token}"

    def open_signed(self, document_id: int, signature: str) -> tuple[Document, Path]:
        try:
            security.verify_document_url_token(signature, document_id)
        except JWTError as exc:
            raise PermissionDenied("Enlace caducado o no válido") from exc
        document = self._repository.get_document(document_id)
        if document is None:
            raise NotFoundError(f"document {document_id} not found")
        artifact = self._repository.get_artifact(document.artifact_id)
        if artifact is None:
            raise NotFoundError(f"document {document_id} has no stored file")
        path = storage.resolve_artifact(artifact.path)
        if not path.exists():
            raise NotFoundError(f"document {document_id} file is missing")
        return document, path

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()


_repository = InMemoryDocumentRepository()
_service = DocumentService(_repository, get_roster_service(), get_broadcaster())


def get_document_service() -> DocumentService:
    """Return the singleton document service for the process."""

    return _service
