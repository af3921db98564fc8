from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError

from teamcall.core import settings
from teamcall.core.db import AsyncSessionLocal
from teamcall.runtime.hub import get_hub
from teamcall.services.auth_service import AuthService


logger = logging.getLogger(__name__)

router = APIRouter()


async def _authenticate(websocket: WebSocket) -> str | None:
    token = websocket.cookies.get("token") or websocket.query_params.get("token")
    async with AsyncSessionLocal() as db:
        return await AuthService(db).authenticate(token)


@router.websocket("/ws")
async def signaling_ws(websocket: WebSocket):
    auth_user_id: str | None = None
    if settings.REQUIRE_AUTH:
        try:
            auth_user_id = await _authenticate(websocket)
        except (SQLAlchemyError, OSError) as e:
            logger.error("token check failed: %s", e)
            await websocket.accept()
            await websocket.close(code=1011, reason="auth unavailable")
            return
        if auth_user_id is None:
            await websocket.accept()
            await websocket.close(code=1008, reason="unauthorized")
            return
        logger.info("websocket authenticated as %s", auth_user_id)

    await websocket.accept()

    hub = get_hub()
    conn = hub.connect(websocket, auth_user_id=auth_user_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))

            raw = message.get("text")
            if not isinstance(raw, str):
                logger.debug("binary frame from %s dropped", conn.connection_id)
                continue
            hub.dispatch(conn.connection_id, raw)

    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(conn.connection_id)
