import io
import sys
from datetime import timedelta
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.application.documents import DocumentService
from workforce.application.roster import RosterService
from workforce.core.errors import ClassificationAmbiguous, NotFoundError, PermissionDenied, PreconditionFailed
from workforce.domain import DomainEvent, EventType, Role, SessionContext
from workforce.domain.documents import utcnow
from workforce.infrastructure import InMemoryDirectoryRepository, InMemoryDocumentRepository


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> int:
        self.events.append(event)
        return 1


@pytest.fixture()
def publisher():
    return RecordingPublisher()


@pytest.fixture()
def roster(publisher):
    service = RosterService(InMemoryDirectoryRepository(), publisher)
    service.add_employee(1, "Admin Root", "admin@example.com", Role.ADMIN)
    service.add_employee(1, "Juan Pérez", "juan@example.com")
    service.add_employee(1, "María Martínez", "maria@example.com")
    service.add_employee(1, "Luis Gómez", "luis@example.com")
    service.add_employee(2, "Other Company", "other@example.com")
    return service


@pytest.fixture()
def service(roster, publisher):
    return DocumentService(InMemoryDocumentRepository(), roster, publisher)


def _session(user_id: int, role: Role = Role.EMPLOYEE, company_id: int = 1) -> SessionContext:
    return SessionContext(user_id=user_id, company_id=company_id, role=role)


ADMIN = _session(1, Role.ADMIN)
JUAN = _session(2)
MARIA = _session(3)
LUIS = _session(4)


def _stored_files(tmp_path: Path) -> list[Path]:
    root = tmp_path / "storage"
    return [path for path in root.rglob("*") if path.is_file()] if root.exists() else []


def test_circular_creates_independent_records_sharing_one_artifact(service, tmp_path):
    batch = service.send_circular(
        ADMIN,
        file_name="Politica_Vacaciones_2025.pdf",
        source=io.BytesIO(b"%PDF-1.4 circular"),
        recipient_ids=[2, 3, 4, 3],
        requires_signature=True,
    )

    assert len(batch.document_ids) == 3
    documents = [service.get_document(ADMIN, document_id) for document_id in batch.document_ids]
    assert {document.artifact_id for document in documents} == {batch.artifact_id}
    assert {document.batch_id for document in documents} == {batch.batch_id}
    assert sorted(document.owner_user_id for document in documents) == [2, 3, 4]
    assert all(document.is_circular for document in documents)
    assert len(_stored_files(tmp_path)) == 1

    juan_document = next(document for document in documents if document.owner_user_id == 2)
    service.mark_viewed(JUAN, juan_document.id)

    viewed = {document.owner_user_id: document.status.is_viewed for document in documents}
    assert viewed == {2: True, 3: False, 4: False}


def test_circular_rejects_unknown_recipients_before_storing(service, tmp_path):
    with pytest.raises(ValueError):
        service.send_circular(ADMIN, file_name="aviso.pdf", source=io.BytesIO(b"x"), recipient_ids=[2, 5])
    assert _stored_files(tmp_path) == []


def test_circular_requires_privileged_role(service):
    with pytest.raises(PermissionDenied):
        service.send_circular(JUAN, file_name="aviso.pdf", source=io.BytesIO(b"x"), recipient_ids=[3])


def test_sign_requires_a_prior_view_by_the_recipient(service):
    batch = service.send_circular(
        ADMIN, file_name="contrato.pdf", source=io.BytesIO(b"x"), recipient_ids=[2], requires_signature=True
    )
    document_id = batch.document_ids[0]

    with pytest.raises(PreconditionFailed):
        service.sign(JUAN, document_id, "data:image/png;base64,AAA")

    before = utcnow()
    service.mark_viewed(JUAN, document_id)
    signed = service.sign(JUAN, document_id, "data:image/png;base64,AAA")

    assert signed.status.is_accepted is True
    assert signed.status.accepted_at >= before - timedelta(seconds=1)
    assert signed.status.signed_at == signed.status.accepted_at
    assert signed.is_complete is True

    with pytest.raises(PreconditionFailed):
        service.sign(JUAN, document_id, "again")


def test_only_the_recipient_can_mark_a_document_viewed(service):
    batch = service.send_circular(ADMIN, file_name="aviso.pdf", source=io.BytesIO(b"x"), recipient_ids=[2])
    document_id = batch.document_ids[0]

    previewed = service.mark_viewed(ADMIN, document_id)
    assert previewed.status.is_viewed is False
    assert previewed.status.viewed_at is None

    viewed = service.mark_viewed(JUAN, document_id)
    first_viewed_at = viewed.status.viewed_at
    assert viewed.status.is_viewed is True
    assert viewed.is_complete is True

    again = service.mark_viewed(JUAN, document_id)
    assert again.status.viewed_at == first_viewed_at


def test_other_employees_cannot_see_foreign_documents(service):
    batch = service.send_circular(ADMIN, file_name="aviso.pdf", source=io.BytesIO(b"x"), recipient_ids=[2])
    with pytest.raises(NotFoundError):
        service.mark_viewed(MARIA, batch.document_ids[0])
    assert service.list_documents(MARIA) == []
    assert [document.id for document in service.list_documents(JUAN)] == batch.document_ids


def test_undo_batch_reports_each_failure_without_rolling_back(service, tmp_path):
    batch = service.send_circular(ADMIN, file_name="aviso.pdf", source=io.BytesIO(b"x"), recipient_ids=[2, 3, 4])
    first, second, third = batch.document_ids
    service.delete_document(ADMIN, second)

    result = service.undo_batch(ADMIN, [first, second, third])

    assert result.deleted == [first, third]
    assert list(result.failed) == [second]
    assert result.is_partial is True
    assert service.list_documents(ADMIN) == []
    assert _stored_files(tmp_path) == []


def test_admin_upload_assigns_employee_from_filename(service):
    document = service.upload_individual(
        ADMIN,
        file_name="Nomina_Marzo_2025_Juan_Perez.pdf",
        source=io.BytesIO(b"payroll"),
        requires_signature=True,
    )

    assert document.owner_user_id == 2
    assert document.document_type == "nomina"
    assert document.file_name == "Nómina Marzo 2025 - Juan Pérez.pdf"
    assert document.original_name == "Nomina_Marzo_2025_Juan_Perez.pdf"
    assert document.requires_signature is True


def test_admin_upload_refuses_to_guess_the_owner(service, tmp_path):
    with pytest.raises(ClassificationAmbiguous):
        service.upload_individual(ADMIN, file_name="Nomina_Marzo_2025.pdf", source=io.BytesIO(b"x"))
    assert _stored_files(tmp_path) == []


def test_employee_upload_is_self_owned_and_broadcast(service, publisher):
    document = service.upload_individual(
        JUAN,
        file_name="justificante_medico.pdf",
        source=io.BytesIO(b"x"),
        target_employee_id=3,
        requires_signature=True,
        request_type="Justificante",
    )

    assert document.owner_user_id == 2
    assert document.requires_signature is False
    assert document.document_type == "justificante"
    event = publisher.events[-1]
    assert event.type is EventType.DOCUMENT_UPLOADED
    assert event.data == {"employeeName": "Juan Pérez", "documentId": document.id, "requestType": "Justificante"}


def test_signed_view_url_is_scoped_to_one_document(service):
    batch = service.send_circular(ADMIN, file_name="aviso.pdf", source=io.BytesIO(b"content"), recipient_ids=[2, 3])
    first, second = batch.document_ids

    url = service.create_view_url(JUAN, first)
    signature = parse_qs(urlparse(url).query)["sig"][0]

    document, path = service.open_signed(first, signature)
    assert document.id == first
    assert path.read_bytes() == b"content"

    with pytest.raises(PermissionDenied):
        service.open_signed(second, signature)
    with pytest.raises(PermissionDenied):
        service.open_signed(first, signature + "tampered")
