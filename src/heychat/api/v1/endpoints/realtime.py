"""WebSocket endpoint carrying the realtime event protocol."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from heychat.realtime import AuthenticationError, RealtimeHub, WebSocketConnection
from heychat.realtime.identity import extract_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, token: str | None = Query(None)) -> None:
    """Authenticate once, then dispatch frames in the order they arrive."""
    hub: RealtimeHub = websocket.app.state.hub
    try:
        identity = await hub.authenticate(
            extract_token(token, websocket.headers.get("authorization"))
        )
    except AuthenticationError as err:
        logger.info("Refused realtime connection: %s", err)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(err))
        return

    await websocket.accept()
    connection = WebSocketConnection(websocket, identity.user_id)
    await hub.connect(identity, connection)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # Text and binary frames carry the same JSON envelope.
            raw = message.get("text") or message.get("bytes")
            if raw is None:
                continue
            await hub.dispatch(identity, connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        connection.mark_closed()
        await hub.disconnect(identity, connection)
