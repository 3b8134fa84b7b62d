"""Delivery and seen state transitions with receipt relay."""

from __future__ import annotations

import asyncio
import logging

from heychat.db.time import utcnow
from heychat.schemas import MessageRead

from .errors import ForbiddenEventError
from .presence import PresenceDirectory
from .router import MESSAGE_DELIVERED
from .store import ChatStore

logger = logging.getLogger(__name__)

MESSAGE_SEEN = "messageSeen"


class StatusPropagator:
    """Applies delivered/seen transitions and tells the original sender."""

    def __init__(self, store: ChatStore, presence: PresenceDirectory) -> None:
        self.store = store
        self.presence = presence
        self._flush_lock = asyncio.Lock()

    async def flush_backlog(self, user_id: str) -> list[int]:
        """Mark everything queued for ``user_id`` as delivered.

        Each message is reported to its sender at most once: flushes are
        serialized, and a flush only sees messages still undelivered.
        Returns the ids that transitioned.
        """
        async with self._flush_lock:
            pending = await self.store.find_undelivered_messages(user_id)
            if not pending:
                return []
            await self.store.mark_messages_delivered([message.id for message in pending])

        for message in pending:
            await self.presence.emit(message.sender, MESSAGE_DELIVERED, {"messageId": message.id})
        logger.info("Flushed %d queued message(s) for %s", len(pending), user_id)
        return [message.id for message in pending]

    async def mark_seen(
        self,
        viewer_id: str,
        message_id: int,
        claimed_sender_id: str | None = None,
    ) -> MessageRead | None:
        """Record that ``viewer_id`` has seen a message and relay the receipt.

        Returns None when the message does not exist.

        Raises:
            ForbiddenEventError: If ``viewer_id`` is not the message's recipient.
        """
        message = await self.store.get_message(message_id)
        if message is None:
            return None
        if message.receiver != viewer_id:
            raise ForbiddenEventError(f"{viewer_id} is not the recipient of message {message_id}")
        if claimed_sender_id is not None and claimed_sender_id != message.sender:
            logger.warning(
                "messageSeen for %s claimed sender %s, recorded sender is %s",
                message_id,
                claimed_sender_id,
                message.sender,
            )

        updated = await self.store.mark_message_seen(message_id, utcnow())
        if updated is None or updated.seen_at is None:
            return updated

        await self.presence.emit(
            updated.sender,
            MESSAGE_SEEN,
            {"messageId": updated.id, "seenAt": updated.seen_at.isoformat()},
        )
        return updated
