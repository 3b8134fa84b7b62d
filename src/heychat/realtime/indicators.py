"""Best-effort typing relay. Nothing here is stored or buffered."""

from __future__ import annotations

from .presence import PresenceDirectory

USER_TYPING = "userTyping"
USER_STOP_TYPING = "userStopTyping"


class TypingBroadcaster:
    def __init__(self, presence: PresenceDirectory) -> None:
        self.presence = presence

    async def typing(self, from_id: str, to_id: str) -> int:
        return await self.presence.emit(to_id, USER_TYPING, {"from": from_id})

    async def stop_typing(self, from_id: str, to_id: str) -> int:
        return await self.presence.emit(to_id, USER_STOP_TYPING, {"from": from_id})
