from __future__ import annotations

import os
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse

from workforce.application import get_document_service
from workforce.core.errors import WorkforceError
from workforce.core.schema import BatchUndoOut, CircularBatchOut, ClassificationOut, DocumentOut
from workforce.core.settings import load_settings
from workforce.domain import SessionContext
from workforce.extractors.filename import suggest_upload_mode

from .deps import get_session, require_privileged, to_http_error

router = APIRouter(prefix="/documents", tags=["documents"])


def _check_upload(upload: UploadFile) -> str:
    if not upload.filename:
        raise HTTPException(status_code=400, detail="Uploaded file must have a filename")
    size = upload.size
    if size is None:
        upload.file.seek(0, os.SEEK_END)
        size = upload.file.tell()
        upload.file.seek(0)
    limit = load_settings().max_upload_bytes
    if size > limit:
        raise HTTPException(status_code=413, detail=f"File exceeds the {limit // (1024 * 1024)} MB limit")
    return Path(upload.filename).name


@router.post("/analyze")
async def analyze_files(payload: dict, session: SessionContext = Depends(require_privileged)) -> dict:
    """Classify a batch of filenames against the company roster."""
    file_names = payload.get("file_names")
    if not isinstance(file_names, list) or not all(isinstance(name, str) for name in file_names):
        raise HTTPException(status_code=400, detail="file_names must be a list of strings")
    service = get_document_service()
    results = service.analyze(session, file_names)
    return {
        "items": [ClassificationOut.from_result(result).model_dump(mode="json") for result in results],
        "suggested_mode": suggest_upload_mode(results),
    }


@router.post("/upload")
async def upload_document(
    file: UploadFile = File(...),
    target_employee_id: int | None = Form(default=None),
    clean_file_name: str | None = Form(default=None),
    requires_signature: bool = Form(default=False),
    request_type: str | None = Form(default=None),
    session: SessionContext = Depends(get_session),
) -> dict:
    service = get_document_service()
    try:
        file_name = _check_upload(file)
        document = service.upload_individual(
            session,
            file_name=file_name,
            source=file.file,
            mime_type=file.content_type,
            target_employee_id=target_employee_id,
            clean_file_name=clean_file_name,
            requires_signature=requires_signature,
            request_type=request_type,
        )
    except (WorkforceError, ValueError) as exc:
        raise to_http_error(exc) from exc
    finally:
        await file.close()
    return DocumentOut.from_document(document).model_dump(mode="json")


@router.post("/upload-circular")
async def upload_circular(
    file: UploadFile = File(...),
    recipient_ids: list[int] = Form(...),
    requires_signature: bool = Form(default=False),
    session: SessionContext = Depends(require_privileged),
) -> dict:
    """Send one file to many employees; each gets an independent document."""
    service = get_document_service()
    try:
        file_name = _check_upload(file)
        batch = service.send_circular(
            session,
            file_name=file_name,
            source=file.file,
            recipient_ids=recipient_ids,
            mime_type=file.content_type,
            requires_signature=requires_signature,
        )
    except (WorkforceError, ValueError) as exc:
        raise to_http_error(exc) from exc
    finally:
        await file.close()
    return CircularBatchOut.from_batch(batch).model_dump(mode="json")


@router.get("")
async def list_documents(session: SessionContext = Depends(get_session)) -> dict:
    service = get_document_service()
    documents = service.list_documents(session)
    return {"items": [DocumentOut.from_document(item).model_dump(mode="json") for item in documents]}


@router.post("/undo-batch")
async def undo_batch(payload: dict, session: SessionContext = Depends(require_privileged)) -> dict:
    ids = payload.get("document_ids")
    if not isinstance(ids, list) or not ids:
        raise HTTPException(status_code=400, detail="document_ids must be a non-empty list")
    try:
        document_ids = [int(item) for item in ids]
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail="document_ids must be integers") from exc
    service = get_document_service()
    result = service.undo_batch(session, document_ids)
    return BatchUndoOut.from_result(result).model_dump(mode="json")


@router.get("/{document_id}")
async def get_document(document_id: int, session: SessionContext = Depends(get_session)) -> dict:
    service = get_document_service()
    try:
        document = service.get_document(session, document_id)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return DocumentOut.from_document(document).model_dump(mode="json")


@router.delete("/{document_id}")
async def delete_document(document_id: int, session: SessionContext = Depends(require_privileged)) -> dict:
    service = get_document_service()
    try:
        service.delete_document(session, document_id)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return {"deleted": document_id}


@router.post("/{document_id}/view")
async def mark_viewed(document_id: int, session: SessionContext = Depends(get_session)) -> dict:
    service = get_document_service()
    try:
        document = service.mark_viewed(session, document_id)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return DocumentOut.from_document(document).model_dump(mode="json")


@router.post("/{document_id}/sign")
async def sign_document(document_id: int, payload: dict, session: SessionContext = Depends(get_session)) -> dict:
    signature = str(payload.get("signature") or "")
    service = get_document_service()
    try:
        document = service.sign(session, document_id, signature)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return DocumentOut.from_document(document).model_dump(mode="json")


@router.post("/{document_id}/signed-url")
async def create_signed_url(document_id: int, session: SessionContext = Depends(get_session)) -> dict:
    """Issue a short-lived link usable without the bearer token."""
    service = get_document_service()
    try:
        url = service.create_view_url(session, document_id)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return {"url": url, "expires_in": load_settings().signed_url_ttl_seconds}


@router.get("/{document_id}/download")
async def download_document(document_id: int, sig: str = Query(...)) -> FileResponse:
    service = get_document_service()
    try:
        document, path = service.open_signed(document_id, sig)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return FileResponse(path, media_type=document.mime_type or "application/octet-stream", filename=document.file_name)
