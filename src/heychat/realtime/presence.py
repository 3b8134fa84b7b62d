"""In-process presence directory.

Maps each user identifier to the set of its live connection handles. A user
is *present* exactly while that set is non-empty. ``register`` and ``remove``
mutate the table synchronously before any await, so a disconnect and a
concurrent connect of the same user can never lose an update; the online and
offline broadcasts happen afterwards and only on the absent/present edges.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from heychat.db.time import utcnow

from .connection import Connection

logger = logging.getLogger(__name__)

USER_ONLINE = "userOnline"
USER_OFFLINE = "userOffline"


class PresenceDirectory:
    """Owns every registered connection handle."""

    def __init__(self) -> None:
        self._connections: dict[str, set[Connection]] = {}

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    async def register(self, user_id: str, connection: Connection) -> bool:
        """Add ``connection`` to the user's handles.

        Returns True when the user was absent before this call, in which case
        every other connected user is told the user came online.
        """
        handles = self._connections.setdefault(user_id, set())
        first = not handles
        handles.add(connection)
        logger.debug("Registered %r (%d live handle(s))", connection, len(handles))

        if first:
            await self.broadcast(USER_ONLINE, {"userId": user_id}, exclude_user=user_id)
        return first

    async def remove(
        self,
        user_id: str,
        connection: Connection,
        last_active: datetime | None = None,
    ) -> bool:
        """Remove one handle; returns True when it was the user's last one."""
        handles = self._connections.get(user_id)
        if handles is None or connection not in handles:
            return False
        handles.discard(connection)
        if handles:
            return False
        del self._connections[user_id]

        seen_at = last_active or utcnow()
        await self.broadcast(
            USER_OFFLINE,
            {"userId": user_id, "lastActive": seen_at.isoformat()},
            exclude_user=user_id,
        )
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup(self, user_id: str) -> frozenset[Connection]:
        """Return a snapshot of the user's live handles (possibly empty)."""
        return frozenset(self._connections.get(user_id, ()))

    def is_online(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    def online_users(self) -> list[str]:
        return sorted(self._connections)

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    async def emit(self, user_id: str, event: str, data: dict[str, Any]) -> int:
        """Send ``event`` to every live handle of ``user_id``.

        Returns the number of handles the event was sent to. The snapshot is
        taken before the first await, so handles closing mid-send are skipped.
        """
        return await self._send_all(self.lookup(user_id), event, data)

    async def broadcast(
        self,
        event: str,
        data: dict[str, Any],
        *,
        exclude_user: str | None = None,
    ) -> int:
        """Send ``event`` to every connected user except ``exclude_user``."""
        targets = [
            conn
            for uid, handles in list(self._connections.items())
            if uid != exclude_user
            for conn in handles
        ]
        return await self._send_all(targets, event, data)

    @staticmethod
    async def _send_all(targets: Iterable[Connection], event: str, data: dict[str, Any]) -> int:
        sent = 0
        for conn in targets:
            if await conn.send(event, data):
                sent += 1
        return sent
