"""Connection handles owned by the presence directory."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any, Protocol

from starlette import status
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)

_CONNECTION_IDS = itertools.count(1)


class Connection(Protocol):
    """Anything the core can emit events to."""

    user_id: str
    connection_id: int

    @property
    def closed(self) -> bool: ...

    async def send(self, event: str, data: dict[str, Any]) -> bool: ...

    async def close(self, code: int) -> None: ...


class WebSocketConnection:
    """A single client WebSocket.

    Handles hash by identity, so two sockets of the same user are distinct
    entries in the presence directory. Writes are serialized per socket and
    sending on a socket that has gone away is a silent no-op.
    """

    def __init__(self, websocket: WebSocket, user_id: str) -> None:
        self.websocket = websocket
        self.user_id = user_id
        self.connection_id = next(_CONNECTION_IDS)
        self._send_lock = asyncio.Lock()
        self._closed = False

    def __repr__(self) -> str:
        return f"<WebSocketConnection #{self.connection_id} user={self.user_id}>"

    @property
    def closed(self) -> bool:
        return self._closed or self.websocket.application_state == WebSocketState.DISCONNECTED

    def mark_closed(self) -> None:
        self._closed = True

    async def send(self, event: str, data: dict[str, Any]) -> bool:
        """Send one frame; return False if the socket is already gone."""
        if self.closed:
            return False
        text = json.dumps({"event": event, "data": data}, separators=(",", ":"))
        async with self._send_lock:
            try:
                await self.websocket.send_text(text)
            except (WebSocketDisconnect, RuntimeError, OSError) as err:
                logger.debug("Dropped %s to closed %r: %s", event, self, err)
                self._closed = True
                return False
        return True

    async def close(self, code: int = status.WS_1008_POLICY_VIOLATION) -> None:
        """Close the socket from the server side; the receive loop then ends."""
        if self.closed:
            return
        self._closed = True
        async with self._send_lock:
            try:
                await self.websocket.close(code=code)
            except (RuntimeError, OSError) as err:
                logger.debug("Closing %r failed: %s", self, err)
