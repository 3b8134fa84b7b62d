"""Relay of delete-for-everyone events.

The stored mutation (content replaced, flag set) is done by the HTTP delete
workflow; this module only tells the other participant.
"""

from __future__ import annotations

from .presence import PresenceDirectory

MESSAGE_DELETED = "messageDeleted"


class DeletionPropagator:
    def __init__(self, presence: PresenceDirectory) -> None:
        self.presence = presence

    async def delete_for_everyone(
        self,
        message_id: int,
        recipient_id: str,
        delete_for_everyone: bool = True,
    ) -> int:
        """Emit ``messageDeleted`` to the recipient; delete-for-me emits nothing."""
        if not delete_for_everyone:
            return 0
        return await self.presence.emit(
            recipient_id,
            MESSAGE_DELETED,
            {"messageId": message_id, "deleteForEveryone": True},
        )
