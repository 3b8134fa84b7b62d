"""Gate that confirms an accepted conversation exists before routing."""

from __future__ import annotations

from heychat.schemas import ConversationRecord

from .errors import NoActiveConversationError
from .store import ChatStore


class ConversationResolver:
    """Read-only lookup of accepted conversations.

    Conversations are created by the contact-acceptance workflow; this class
    never creates one.
    """

    def __init__(self, store: ChatStore) -> None:
        self.store = store

    async def resolve(self, user_a: str, user_b: str) -> ConversationRecord:
        """Return the accepted conversation between two users.

        Raises:
            NoActiveConversationError: If the pair has no accepted conversation.
        """
        conversation = await self.store.find_accepted_conversation(user_a, user_b)
        if conversation is None:
            raise NoActiveConversationError(f"no accepted chat between {user_a} and {user_b}")
        return conversation
