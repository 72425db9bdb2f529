"""Async REST client used as query fetcher and for user mutations."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx

from workforce.core.errors import MutationError, PartialBatchFailure

from .keys import CacheKey
from .registry import QueryPolicy, QueryRegistry

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "No se pudo conectar con el servidor. Comprueba tu conexión e inténtalo de nuevo."

_WORK_SESSION_KEYS = (CacheKey.ACTIVE_WORK_SESSION, CacheKey.COMPANY_WORK_SESSIONS, CacheKey.DASHBOARD_SUMMARY)
_DOCUMENT_KEYS = (CacheKey.DOCUMENTS, CacheKey.ALL_DOCUMENTS, CacheKey.DASHBOARD_SUMMARY)


@dataclass(slots=True)
class BatchUndoReport:
    deleted: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.deleted) + len(self.failed)

    def raise_for_failures(self) -> None:
        if self.failed:
            raise PartialBatchFailure(list(self.deleted), dict(self.failed))


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    detail = payload.get("detail") if isinstance(payload, dict) else None
    if isinstance(detail, dict):
        return str(detail.get("reason") or detail)
    return str(detail or payload)


class WorkforceApiClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        registry: QueryRegistry | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"}
        self._registry = registry
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _invalidate(self, keys: Iterable[CacheKey]) -> None:
        if self._registry is None:
            return
        for key in keys:
            self._registry.invalidate(key)

    # ------------------------------------------------------------------
    # fetchers: errors propagate so the registry keeps them on the entry
    # ------------------------------------------------------------------
    async def _get(self, path: str) -> Any:
        response = await self._client.get(self._url(path), headers=self._headers)
        response.raise_for_status()
        return response.json()

    async def fetch_dashboard_summary(self) -> dict:
        return await self._get("/api/dashboard/summary")

    async def fetch_active_session(self) -> dict | None:
        payload = await self._get("/api/work-sessions/active")
        return payload.get("session")

    async def fetch_work_sessions(self) -> list[dict]:
        return (await self._get("/api/work-sessions"))["items"]

    async def fetch_documents(self) -> list[dict]:
        return (await self._get("/api/documents"))["items"]

    async def fetch_messages(self) -> list[dict]:
        return (await self._get("/api/messages"))["items"]

    async def fetch_unread_count(self) -> int:
        return int((await self._get("/api/messages/unread-count"))["count"])

    async def fetch_vacation_requests(self) -> list[dict]:
        return (await self._get("/api/vacation-requests"))["items"]

    async def fetch_modification_requests(self) -> list[dict]:
        return (await self._get("/api/modification-requests"))["items"]

    async def fetch_document_requests(self) -> list[dict]:
        return (await self._get("/api/document-requests"))["items"]

    async def fetch_work_reports(self) -> list[dict]:
        return (await self._get("/api/work-reports"))["items"]

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------
    async def _mutate(
        self,
        method: str,
        path: str,
        *,
        title: str,
        invalidates: Iterable[CacheKey] = (),
        **kwargs: Any,
    ) -> Any:
        try:
            response = await self._client.request(method, self._url(path), headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise MutationError(title, NETWORK_ERROR_MESSAGE) from exc
        if response.is_error:
            raise MutationError(title, _error_detail(response), status_code=response.status_code)
        self._invalidate(invalidates)
        return response.json()

    async def clock_in(self) -> dict:
        return await self._mutate(
            "POST", "/api/work-sessions/clock-in", title="Error al fichar la entrada", invalidates=_WORK_SESSION_KEYS
        )

    async def clock_out(self) -> dict:
        return await self._mutate(
            "POST", "/api/work-sessions/clock-out", title="Error al fichar la salida", invalidates=_WORK_SESSION_KEYS
        )

    async def start_break(self) -> dict:
        return await self._mutate(
            "POST", "/api/work-sessions/break/start", title="Error al iniciar el descanso", invalidates=_WORK_SESSION_KEYS
        )

    async def end_break(self) -> dict:
        return await self._mutate(
            "POST", "/api/work-sessions/break/end", title="Error al finalizar el descanso", invalidates=_WORK_SESSION_KEYS
        )

    async def upload_document(
        self,
        file_name: str,
        content: bytes,
        *,
        target_employee_id: int | None = None,
        clean_file_name: str | None = None,
        requires_signature: bool = False,
        request_type: str | None = None,
        mime_type: str = "application/pdf",
    ) -> dict:
        data: dict[str, str] = {"requires_signature": "true" if requires_signature else "false"}
        if target_employee_id is not None:
            data["target_employee_id"] = str(target_employee_id)
        if clean_file_name:
            data["clean_file_name"] = clean_file_name
        if request_type:
            data["request_type"] = request_type
        return await self._mutate(
            "POST",
            "/api/documents/upload",
            title="Error al subir el documento",
            invalidates=_DOCUMENT_KEYS,
            files={"file": (file_name, content, mime_type)},
            data=data,
        )

    async def upload_circular(
        self,
        file_name: str,
        content: bytes,
        recipient_ids: Iterable[int],
        *,
        requires_signature: bool = False,
        mime_type: str = "application/pdf",
    ) -> dict:
        return await self._mutate(
            "POST",
            "/api/documents/upload-circular",
            title="Error al enviar la circular",
            invalidates=_DOCUMENT_KEYS,
            files={"file": (file_name, content, mime_type)},
            data={
                "recipient_ids": [str(recipient) for recipient in recipient_ids],
                "requires_signature": "true" if requires_signature else "false",
            },
        )

    async def mark_viewed(self, document_id: int) -> dict:
        return await self._mutate(
            "POST", f"/api/documents/{document_id}/view", title="Error al abrir el documento", invalidates=_DOCUMENT_KEYS
        )

    async def sign(self, document_id: int, signature: str) -> dict:
        return await self._mutate(
            "POST",
            f"/api/documents/{document_id}/sign",
            title="Error al firmar el documento",
            invalidates=_DOCUMENT_KEYS,
            json={"signature": signature},
        )

    async def create_view_url(self, document_id: int) -> str:
        payload = await self._mutate(
            "POST", f"/api/documents/{document_id}/signed-url", title="Error al generar el enlace"
        )
        return self._url(payload["url"])

    async def delete_document(self, document_id: int) -> dict:
        return await self._mutate(
            "DELETE", f"/api/documents/{document_id}", title="Error al eliminar el documento", invalidates=_DOCUMENT_KEYS
        )

    async def undo_batch(self, document_ids: Iterable[int]) -> BatchUndoReport:
        """Delete every document of a circular, one by one, without rolling back failures."""

        report = BatchUndoReport()
        for document_id in document_ids:
            try:
                await self._mutate("DELETE", f"/api/documents/{document_id}", title="Error al deshacer el envío")
            except MutationError as exc:
                report.failed[document_id] = exc.description
            else:
                report.deleted.append(document_id)
        self._invalidate(_DOCUMENT_KEYS)
        if report.failed:
            logger.warning("Se han eliminado %s de %s documentos", len(report.deleted), report.total)
        return report

    async def send_message(self, receiver_id: int, content: str, subject: str | None = None) -> dict:
        return await self._mutate(
            "POST",
            "/api/messages",
            title="Error al enviar el mensaje",
            invalidates=(CacheKey.MESSAGES,),
            json={"receiver_id": receiver_id, "content": content, "subject": subject},
        )

    async def request_vacation(self, start_date: str, end_date: str, reason: str | None = None) -> dict:
        return await self._mutate(
            "POST",
            "/api/vacation-requests",
            title="Error al solicitar vacaciones",
            invalidates=(CacheKey.VACATION_REQUESTS,),
            json={"start_date": start_date, "end_date": end_date, "reason": reason},
        )


def register_queries(registry: QueryRegistry, api: WorkforceApiClient, *, privileged: bool) -> None:
    """Register the cached queries a signed-in session keeps warm."""

    registry.register(
        CacheKey.ACTIVE_WORK_SESSION,
        api.fetch_active_session,
        QueryPolicy(stale_time=10, refetch_interval=30, background_refetch_allowed=True),
    )
    registry.register(CacheKey.MESSAGES, api.fetch_messages, QueryPolicy(stale_time=30))
    registry.register(
        CacheKey.UNREAD_MESSAGE_COUNT, api.fetch_unread_count, QueryPolicy(stale_time=30, refetch_interval=60)
    )
    registry.register(CacheKey.DOCUMENTS, api.fetch_documents, QueryPolicy(stale_time=60))
    registry.register(CacheKey.VACATION_REQUESTS, api.fetch_vacation_requests, QueryPolicy(stale_time=60))
    registry.register(CacheKey.DOCUMENT_NOTIFICATIONS, api.fetch_document_requests, QueryPolicy(stale_time=60))
    if not privileged:
        return
    registry.register(
        CacheKey.DASHBOARD_SUMMARY,
        api.fetch_dashboard_summary,
        QueryPolicy(stale_time=30, refetch_interval=60),
    )
    registry.register(
        CacheKey.COMPANY_WORK_SESSIONS,
        api.fetch_work_sessions,
        QueryPolicy(stale_time=30, depends_on=CacheKey.DASHBOARD_SUMMARY),
    )
    registry.register(CacheKey.MODIFICATION_REQUESTS, api.fetch_modification_requests, QueryPolicy(stale_time=60))
    registry.register(CacheKey.WORK_REPORTS, api.fetch_work_reports, QueryPolicy(stale_time=60))
