"""Event channel endpoint pushing domain events to dashboards."""
from __future__ import annotations

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from jose import JWTError

from workforce.domain import EventType
from workforce.infrastructure import ChannelConnection, get_broadcaster

from .deps import session_from_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])

CONNECTED_MESSAGE = "Conectado a actualizaciones en tiempo real"


async def _drain(websocket: WebSocket, connection: ChannelConnection) -> None:
    while True:
        payload = await connection.queue.get()
        try:
            await websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError):
            logger.info("Dropping event channel writer for user %s", connection.user_id)
            return


@router.websocket("/ws/work-sessions")
async def work_session_events(websocket: WebSocket, token: str | None = Query(default=None)) -> None:
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication required")
        return
    try:
        session = session_from_token(token)
    except JWTError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return

    await websocket.accept()
    broadcaster = get_broadcaster()
    connection = ChannelConnection(user_id=session.user_id, company_id=session.company_id, role=session.role)
    broadcaster.register(connection)
    connection.offer({"type": EventType.CONNECTED.value, "message": CONNECTED_MESSAGE})
    writer = asyncio.create_task(_drain(websocket, connection))

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Ignoring non-JSON frame from user %s", session.user_id)
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                connection.offer({"type": EventType.PONG.value})
    except WebSocketDisconnect:
        logger.info("Event channel closed by client: user_id=%s", session.user_id)
    finally:
        broadcaster.unregister(connection)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
