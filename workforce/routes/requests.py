from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException

from workforce.application import get_workforce_service
from workforce.core.errors import WorkforceError
from workforce.core.schema import (
    DocumentRequestOut,
    ModificationRequestOut,
    ReminderOut,
    VacationRequestOut,
    WorkReportOut,
)
from workforce.domain import Reminder, SessionContext

from .deps import get_session, require_privileged, to_http_error

router = APIRouter(tags=["requests"])


def _parse_date(value, field_name: str) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"{field_name} must be an ISO date") from exc


def _parse_datetime(value, field_name: str) -> datetime | None:
    if value in (None, ""):
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"{field_name} must be an ISO datetime") from exc


def _reminder_out(reminder: Reminder) -> dict:
    return ReminderOut(
        id=reminder.id,
        title=reminder.title,
        assigned_user_ids=list(reminder.assigned_user_ids),
        completed_by=sorted(reminder.completed_by),
        all_completed=reminder.all_completed,
    ).model_dump(mode="json")


# ----------------------------------------------------------------------
# vacation requests
# ----------------------------------------------------------------------
@router.get("/vacation-requests")
async def list_vacation_requests(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    items = service.list_vacation_requests(session)
    return {"items": [VacationRequestOut.model_validate(item).model_dump(mode="json") for item in items]}


@router.post("/vacation-requests")
async def create_vacation_request(payload: dict, session: SessionContext = Depends(get_session)) -> dict:
    if not payload.get("start_date") or not payload.get("end_date"):
        raise HTTPException(status_code=400, detail="start_date and end_date are required")
    start = _parse_date(payload["start_date"], "start_date")
    end = _parse_date(payload["end_date"], "end_date")
    service = get_workforce_service()
    try:
        request = service.request_vacation(session, start, end, payload.get("reason"))
    except ValueError as exc:
        raise to_http_error(exc) from exc
    return VacationRequestOut.model_validate(request).model_dump(mode="json")


@router.patch("/vacation-requests/{request_id}")
async def review_vacation_request(
    request_id: int, payload: dict, session: SessionContext = Depends(require_privileged)
) -> dict:
    service = get_workforce_service()
    try:
        request = service.review_vacation(session, request_id, str(payload.get("status") or ""), payload.get("comment"))
    except (WorkforceError, ValueError) as exc:
        raise to_http_error(exc) from exc
    return VacationRequestOut.model_validate(request).model_dump(mode="json")


# ----------------------------------------------------------------------
# modification requests
# ----------------------------------------------------------------------
@router.get("/modification-requests")
async def list_modification_requests(session: SessionContext = Depends(require_privileged)) -> dict:
    service = get_workforce_service()
    items = service.list_modification_requests(session)
    return {"items": [ModificationRequestOut.model_validate(item).model_dump(mode="json") for item in items]}


@router.post("/modification-requests")
async def create_modification_request(payload: dict, session: SessionContext = Depends(get_session)) -> dict:
    if not payload.get("date"):
        raise HTTPException(status_code=400, detail="date is required")
    work_date = _parse_date(payload["date"], "date")
    clock_in = _parse_datetime(payload.get("clock_in"), "clock_in")
    clock_out = _parse_datetime(payload.get("clock_out"), "clock_out")
    service = get_workforce_service()
    try:
        request = service.request_modification(session, work_date, clock_in, clock_out, payload.get("reason"))
    except ValueError as exc:
        raise to_http_error(exc) from exc
    return ModificationRequestOut.model_validate(request).model_dump(mode="json")


@router.patch("/modification-requests/{request_id}")
async def review_modification_request(
    request_id: int, payload: dict, session: SessionContext = Depends(require_privileged)
) -> dict:
    service = get_workforce_service()
    try:
        request = service.review_modification(session, request_id, str(payload.get("status") or ""))
    except (WorkforceError, ValueError) as exc:
        raise to_http_error(exc) from exc
    return ModificationRequestOut.model_validate(request).model_dump(mode="json")


# ----------------------------------------------------------------------
# document requests, work reports, reminders
# ----------------------------------------------------------------------
@router.get("/document-requests")
async def list_document_requests(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    items = service.list_document_requests(session)
    return {"items": [DocumentRequestOut.model_validate(item).model_dump(mode="json") for item in items]}


@router.post("/document-requests")
async def create_document_request(payload: dict, session: SessionContext = Depends(require_privileged)) -> dict:
    user_id = payload.get("user_id")
    document_type = payload.get("document_type")
    if user_id is None or not document_type:
        raise HTTPException(status_code=400, detail="user_id and document_type are required")
    service = get_workforce_service()
    try:
        request = service.request_document(session, int(user_id), str(document_type), payload.get("message"))
    except (WorkforceError, ValueError) as exc:
        raise to_http_error(exc) from exc
    return DocumentRequestOut.model_validate(request).model_dump(mode="json")


@router.get("/work-reports")
async def list_work_reports(session: SessionContext = Depends(require_privileged)) -> dict:
    service = get_workforce_service()
    items = service.list_work_reports(session)
    return {"items": [WorkReportOut.model_validate(item).model_dump(mode="json") for item in items]}


@router.post("/work-reports")
async def create_work_report(payload: dict, session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    try:
        report = service.submit_work_report(
            session, str(payload.get("location") or ""), str(payload.get("description") or "")
        )
    except ValueError as exc:
        raise to_http_error(exc) from exc
    return WorkReportOut.model_validate(report).model_dump(mode="json")


@router.post("/reminders")
async def create_reminder(payload: dict, session: SessionContext = Depends(require_privileged)) -> dict:
    title = payload.get("title")
    assigned = payload.get("assigned_user_ids")
    if not title or not isinstance(assigned, list) or not assigned:
        raise HTTPException(status_code=400, detail="title and assigned_user_ids are required")
    service = get_workforce_service()
    try:
        reminder = service.create_reminder(session, str(title), [int(item) for item in assigned])
    except (WorkforceError, ValueError) as exc:
        raise to_http_error(exc) from exc
    return _reminder_out(reminder)


@router.post("/reminders/{reminder_id}/complete")
async def complete_reminder(reminder_id: int, session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    try:
        reminder = service.complete_reminder(session, reminder_id)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return _reminder_out(reminder)
