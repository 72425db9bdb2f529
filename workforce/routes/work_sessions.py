from __future__ import annotations

from fastapi import APIRouter, Depends

from workforce.application import get_workforce_service
from workforce.core.errors import WorkforceError
from workforce.core.schema import WorkSessionOut
from workforce.domain import SessionContext

from .deps import get_session, require_privileged, to_http_error

router = APIRouter(prefix="/work-sessions", tags=["work-sessions"])


def _dump(work_session) -> dict:
    return WorkSessionOut.model_validate(work_session).model_dump(mode="json")


@router.get("")
async def list_work_sessions(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    return {"items": [_dump(item) for item in service.list_sessions(session)]}


@router.get("/active")
async def get_active_session(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    current = service.active_session(session)
    return {"session": _dump(current) if current else None}


@router.post("/clock-in")
async def clock_in(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    return _dump(service.clock_in(session))


@router.post("/clock-out")
async def clock_out(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    try:
        return _dump(service.clock_out(session))
    except WorkforceError as exc:
        raise to_http_error(exc) from exc


@router.post("/break/start")
async def start_break(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    try:
        return _dump(service.start_break(session))
    except WorkforceError as exc:
        raise to_http_error(exc) from exc


@router.post("/break/end")
async def end_break(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    try:
        return _dump(service.end_break(session))
    except WorkforceError as exc:
        raise to_http_error(exc) from exc


@router.delete("/{session_id}")
async def delete_work_session(session_id: int, session: SessionContext = Depends(require_privileged)) -> dict:
    service = get_workforce_service()
    try:
        service.delete_session(session, session_id)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return {"deleted": session_id}
