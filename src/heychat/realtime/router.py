"""Message routing: validate, persist, then emit."""

from __future__ import annotations

import logging

from heychat.schemas import MessageDraft, MessageRead, PrivateMessageIntent

from .connection import Connection
from .conversations import ConversationResolver
from .errors import SilentDrop
from .presence import PresenceDirectory
from .store import ChatStore

logger = logging.getLogger(__name__)

RECEIVE_MESSAGE = "receiveMessage"
MESSAGE_SENT = "messageSent"
MESSAGE_DELIVERED = "messageDelivered"


class MessageRouter:
    """Turns a sender's message intent into a persisted, delivered message."""

    def __init__(
        self,
        store: ChatStore,
        presence: PresenceDirectory,
        conversations: ConversationResolver,
    ) -> None:
        self.store = store
        self.presence = presence
        self.conversations = conversations

    async def route(
        self,
        sender_id: str,
        intent: PrivateMessageIntent,
        origin: Connection | None = None,
        *,
        forwarded: bool = False,
    ) -> MessageRead:
        """Route one message from ``sender_id``.

        Nothing is emitted unless every persistence step succeeded. The
        acknowledgment goes to ``origin`` only, never to the sender's other
        handles. A ``replyTo`` pointing outside this conversation is dropped.
        Only the HTTP forward workflow sets ``forwarded``.

        Raises:
            SilentDrop: The recipient is unknown or has blocked the sender.
            NoActiveConversationError: No accepted chat between the two users.
            StorageError: A persistence call failed.
        """
        recipient_id = intent.to
        recipient = await self.store.find_user_by_id(recipient_id)
        if recipient is None:
            raise SilentDrop(f"unknown recipient {recipient_id}")
        if await self.store.user_is_blocking(recipient_id, sender_id):
            raise SilentDrop(f"{recipient_id} has blocked {sender_id}")

        conversation = await self.conversations.resolve(sender_id, recipient_id)

        reply_to = None
        if intent.reply_to is not None:
            reply_to = await self.store.get_reply_summary(intent.reply_to, (sender_id, recipient_id))
            if reply_to is None:
                logger.info("Ignoring replyTo %s from %s: not in this conversation", intent.reply_to, sender_id)

        # Evaluated once, at routing time; a later connect is reconciled by the backlog flush.
        delivered_immediately = self.presence.is_online(recipient_id)

        message = await self.store.create_message(
            MessageDraft(
                sender_id=sender_id,
                receiver_id=recipient_id,
                content=intent.content,
                type=intent.type,
                file_url=intent.file_url,
                reply_to_id=reply_to.id if reply_to is not None else None,
                forwarded=forwarded,
                delivered=delivered_immediately,
            )
        )
        await self.store.append_message_to_conversation(conversation.id, message.id)

        message = message.model_copy(update={"chat_id": conversation.id, "reply_to": reply_to})

        payload = message.to_payload()
        await self.presence.emit(recipient_id, RECEIVE_MESSAGE, payload)
        if origin is not None:
            await origin.send(MESSAGE_SENT, payload)
            if delivered_immediately:
                await origin.send(MESSAGE_DELIVERED, {"messageId": message.id})

        logger.debug(
            "Routed message %s from %s to %s (delivered=%s)",
            message.id,
            sender_id,
            recipient_id,
            delivered_immediately,
        )
        return message
