import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.application import get_roster_service
from workforce.core.security import create_access_token
from workforce.domain import Employee, Role


@pytest.fixture()
def client():
    from workforce.app import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def people() -> dict[str, Employee]:
    roster = get_roster_service()
    return {
        "admin": roster.add_employee(1, "Admin Root", "admin@example.com", Role.ADMIN),
        "juan": roster.add_employee(1, "Juan Pérez", "juan@example.com"),
        "maria": roster.add_employee(1, "María Martínez", "maria@example.com"),
    }


def _auth(employee: Employee) -> dict[str, str]:
    return {"Authorization": f"Bearer {_token(employee)}"}


def _token(employee: Employee) -> str:
    return create_access_token(employee.id, employee.company_id, employee.role.value)


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/documents").status_code == 401
    response = client.get("/api/documents", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_dashboard_is_reserved_to_privileged_roles(client, people):
    assert client.get("/api/dashboard/summary", headers=_auth(people["juan"])).status_code == 403

    client.post("/api/work-sessions/clock-in", headers=_auth(people["juan"]))
    response = client.get("/api/dashboard/summary", headers=_auth(people["admin"]))

    assert response.status_code == 200
    summary = response.json()
    assert len(summary["employees"]) == 3
    assert [item["user_id"] for item in summary["active_sessions"]] == [people["juan"].id]


def test_analyze_suggests_circular_mode(client, people):
    response = client.post(
        "/api/documents/analyze",
        json={"file_names": ["Nomina_Marzo_2025_Juan_Perez.pdf", "Normativa_interna.pdf"]},
        headers=_auth(people["admin"]),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["suggested_mode"] == "circular"
    first = payload["items"][0]
    assert first["employee_id"] == people["juan"].id
    assert first["confidence"] == "high"
    assert first["suggested_name"] == "Nómina Marzo 2025 - Juan Pérez.pdf"


def test_circular_upload_view_sign_and_download(client, people):
    response = client.post(
        "/api/documents/upload-circular",
        files={"file": ("Protocolo.pdf", b"%PDF-1.4 protocolo", "application/pdf")},
        data={"recipient_ids": [str(people["juan"].id), str(people["maria"].id)], "requires_signature": "true"},
        headers=_auth(people["admin"]),
    )
    assert response.status_code == 200
    batch = response.json()
    assert len(batch["document_ids"]) == 2

    documents = client.get("/api/documents", headers=_auth(people["juan"])).json()["items"]
    assert len(documents) == 1
    document_id = documents[0]["id"]

    early = client.post(f"/api/documents/{document_id}/sign", json={"signature": "firma"}, headers=_auth(people["juan"]))
    assert early.status_code == 409

    viewed = client.post(f"/api/documents/{document_id}/view", headers=_auth(people["juan"]))
    assert viewed.json()["is_viewed"] is True

    signed = client.post(f"/api/documents/{document_id}/sign", json={"signature": "firma"}, headers=_auth(people["juan"]))
    assert signed.status_code == 200
    assert signed.json()["is_complete"] is True

    link = client.post(f"/api/documents/{document_id}/signed-url", headers=_auth(people["juan"])).json()
    assert "sig=" in link["url"]
    download = client.get(link["url"])
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 protocolo"

    forged = client.get(f"/api/documents/{document_id}/download", params={"sig": "forged"})
    assert forged.status_code == 403


def test_ambiguous_admin_upload_returns_422(client, people):
    response = client.post(
        "/api/documents/upload",
        files={"file": ("Nomina_Marzo_2025.pdf", b"x", "application/pdf")},
        headers=_auth(people["admin"]),
    )
    assert response.status_code == 422
    assert response.json()["detail"]["file_name"] == "Nomina_Marzo_2025.pdf"


def test_oversized_upload_is_rejected(client, people, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "4")
    response = client.post(
        "/api/documents/upload",
        files={"file": ("justificante.pdf", b"0123456789", "application/pdf")},
        headers=_auth(people["juan"]),
    )
    assert response.status_code == 413


def test_undo_batch_reports_partial_failures(client, people):
    batch = client.post(
        "/api/documents/upload-circular",
        files={"file": ("Aviso.pdf", b"aviso", "application/pdf")},
        data={"recipient_ids": [str(people["juan"].id), str(people["maria"].id)]},
        headers=_auth(people["admin"]),
    ).json()
    ids = batch["document_ids"] + [999]

    response = client.post("/api/documents/undo-batch", json={"document_ids": ids}, headers=_auth(people["admin"]))

    assert response.status_code == 200
    payload = response.json()
    assert payload["deleted"] == batch["document_ids"]
    assert list(payload["failed"]) == ["999"]
    assert payload["is_partial"] is True


def test_clock_out_without_open_session_conflicts(client, people):
    response = client.post("/api/work-sessions/clock-out", headers=_auth(people["juan"]))
    assert response.status_code == 409

    first = client.post("/api/work-sessions/clock-in", headers=_auth(people["juan"])).json()
    second = client.post("/api/work-sessions/clock-in", headers=_auth(people["juan"])).json()
    assert first["id"] == second["id"]


def test_event_channel_requires_a_token(client):
    with pytest.raises(WebSocketDisconnect) as missing:
        with client.websocket_connect("/ws/work-sessions"):
            pass
    assert missing.value.code == 1008

    with pytest.raises(WebSocketDisconnect) as invalid:
        with client.websocket_connect("/ws/work-sessions?token=garbage"):
            pass
    assert invalid.value.code == 1008


def test_event_channel_pushes_company_events(client, people):
    with client.websocket_connect(f"/ws/work-sessions?token={_token(people['admin'])}") as websocket:
        assert websocket.receive_json()["type"] == "connected"

        client.post("/api/work-sessions/clock-in", headers=_auth(people["juan"]))
        event = websocket.receive_json()
        assert event["type"] == "work_session_created"
        assert event["companyId"] == 1
        assert event["data"]["userId"] == people["juan"].id

        client.post(
            "/api/messages",
            json={"receiver_id": people["admin"].id, "content": "Hola"},
            headers=_auth(people["juan"]),
        )
        message = websocket.receive_json()
        assert message["type"] == "message_received"
        assert message["data"]["senderName"] == "Juan Pérez"

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}


def test_employee_channel_only_receives_events_addressed_to_it(client, people):
    with client.websocket_connect(f"/ws/work-sessions?token={_token(people['maria'])}") as websocket:
        assert websocket.receive_json()["type"] == "connected"

        client.post(
            "/api/messages",
            json={"receiver_id": people["admin"].id, "content": "Hola"},
            headers=_auth(people["juan"]),
        )
        client.post("/api/work-sessions/clock-in", headers=_auth(people["juan"]))
        client.put(f"/api/employees/{people['juan'].id}/role", json={"role": "manager"}, headers=_auth(people["admin"]))
        client.post(
            "/api/messages",
            json={"receiver_id": people["maria"].id, "content": "¿Puedes venir?"},
            headers=_auth(people["admin"]),
        )

        first = websocket.receive_json()
        assert first["type"] == "message_received"
        assert first["data"]["receiverId"] == people["maria"].id
        assert first["data"]["senderName"] == "Admin Root"

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}
