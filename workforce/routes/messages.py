from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from workforce.application import get_workforce_service
from workforce.core.errors import WorkforceError
from workforce.core.schema import MessageOut
from workforce.domain import SessionContext

from .deps import get_session, to_http_error

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("")
async def list_messages(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    messages = service.list_messages(session)
    return {"items": [MessageOut.model_validate(item).model_dump(mode="json") for item in messages]}


@router.get("/unread-count")
async def unread_count(session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    return {"count": service.unread_count(session)}


@router.post("")
async def send_message(payload: dict, session: SessionContext = Depends(get_session)) -> dict:
    receiver_id = payload.get("receiver_id")
    content = payload.get("content")
    if receiver_id is None or not isinstance(content, str):
        raise HTTPException(status_code=400, detail="receiver_id and content are required")
    service = get_workforce_service()
    try:
        message = service.send_message(session, int(receiver_id), content, payload.get("subject"))
    except (WorkforceError, ValueError) as exc:
        raise to_http_error(exc) from exc
    return MessageOut.model_validate(message).model_dump(mode="json")


@router.post("/{message_id}/read")
async def mark_read(message_id: int, session: SessionContext = Depends(get_session)) -> dict:
    service = get_workforce_service()
    try:
        message = service.mark_message_read(session, message_id)
    except WorkforceError as exc:
        raise to_http_error(exc) from exc
    return MessageOut.model_validate(message).model_dump(mode="json")
