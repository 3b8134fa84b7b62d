"""Persistence collaborator used by the realtime core.

``ChatStore`` is the narrow interface the core depends on; ``SqlChatStore``
implements it on SQLAlchemy. Every method is a coroutine so the core treats
each call as a suspension point, and every database failure surfaces as
``StorageError``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Protocol

from sqlalchemy import and_, exists, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from heychat.db.time import as_utc, utcnow
from heychat.models import Chat, Message, User, user_block
from heychat.models.chat import CHAT_STATUS_ACCEPTED, ordered_pair
from heychat.schemas import ConversationRecord, MessageDraft, MessageRead, ReplySummary, UserRecord

from .errors import StorageError

logger = logging.getLogger(__name__)


class ChatStore(Protocol):
    """Read/write operations the realtime core needs from storage."""

    async def find_user_by_id(self, user_id: str) -> UserRecord | None: ...

    async def user_is_blocking(self, blocker_id: str, blocked_id: str) -> bool: ...

    async def find_accepted_conversation(self, user_a: str, user_b: str) -> ConversationRecord | None: ...

    async def create_message(self, draft: MessageDraft) -> MessageRead: ...

    async def append_message_to_conversation(self, chat_id: int, message_id: int) -> None: ...

    async def get_reply_summary(self, message_id: int, participants: tuple[str, str]) -> ReplySummary | None: ...

    async def get_message(self, message_id: int) -> MessageRead | None: ...

    async def update_user_last_active(self, user_id: str, when: datetime) -> None: ...

    async def find_undelivered_messages(self, user_id: str) -> list[MessageRead]: ...

    async def mark_messages_delivered(self, message_ids: Sequence[int]) -> int: ...

    async def mark_message_seen(self, message_id: int, when: datetime) -> MessageRead | None: ...


def message_to_read(message: Message, reply_to: ReplySummary | None = None) -> MessageRead:
    """Convert an ORM message into its wire record."""
    return MessageRead(
        id=message.id,
        chat_id=message.chat_id,
        sender=message.sender_id,
        receiver=message.receiver_id,
        content=message.content,
        type=message.type,
        file_url=message.file_url,
        reply_to=reply_to,
        forwarded=message.forwarded,
        delivered=message.delivered,
        seen=message.seen,
        seen_at=as_utc(message.seen_at),
        deleted_for_everyone=message.deleted_for_everyone,
        created_at=as_utc(message.created_at) or utcnow(),
    )


def user_to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        is_admin=user.is_admin,
        is_banned=user.is_banned,
        last_active=as_utc(user.last_active),
    )


def reply_summary(message: Message) -> ReplySummary:
    return ReplySummary(
        id=message.id,
        content=message.content,
        type=message.type,
        sender=message.sender_id,
    )


class SqlChatStore:
    """``ChatStore`` backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as err:
            session.rollback()
            logger.error("Storage operation %s failed: %s", operation, err)
            raise StorageError(f"{operation} failed") from err
        finally:
            session.close()

    async def find_user_by_id(self, user_id: str) -> UserRecord | None:
        with self._session("find_user_by_id") as session:
            user = session.get(User, user_id)
            return user_to_record(user) if user is not None else None

    async def user_is_blocking(self, blocker_id: str, blocked_id: str) -> bool:
        with self._session("user_is_blocking") as session:
            stmt = select(
                exists().where(
                    and_(
                        user_block.c.blocker_id == blocker_id,
                        user_block.c.blocked_id == blocked_id,
                    )
                )
            )
            return bool(session.execute(stmt).scalar())

    async def find_accepted_conversation(self, user_a: str, user_b: str) -> ConversationRecord | None:
        low, high = ordered_pair(user_a, user_b)
        with self._session("find_accepted_conversation") as session:
            chat = session.execute(
                select(Chat).where(
                    Chat.user_low_id == low,
                    Chat.user_high_id == high,
                    Chat.status == CHAT_STATUS_ACCEPTED,
                )
            ).scalar_one_or_none()
            if chat is None:
                return None
            return ConversationRecord(
                id=chat.id,
                participants=chat.participants,
                status=chat.status,
                last_message_id=chat.last_message_id,
            )

    async def create_message(self, draft: MessageDraft) -> MessageRead:
        with self._session("create_message") as session:
            message = Message(
                sender_id=draft.sender_id,
                receiver_id=draft.receiver_id,
                content=draft.content,
                type=draft.type,
                file_url=draft.file_url,
                reply_to_id=draft.reply_to_id,
                forwarded=draft.forwarded,
                delivered=draft.delivered,
                seen=False,
                created_at=utcnow(),
            )
            session.add(message)
            session.commit()
            session.refresh(message)
            return message_to_read(message)

    async def append_message_to_conversation(self, chat_id: int, message_id: int) -> None:
        with self._session("append_message_to_conversation") as session:
            session.execute(update(Message).where(Message.id == message_id).values(chat_id=chat_id))
            session.execute(
                update(Chat)
                .where(Chat.id == chat_id)
                .values(last_message_id=message_id, updated_at=utcnow())
            )
            session.commit()

    async def get_reply_summary(self, message_id: int, participants: tuple[str, str]) -> ReplySummary | None:
        """Summarize ``message_id`` if it was exchanged between ``participants``."""
        with self._session("get_reply_summary") as session:
            message = session.get(Message, message_id)
            if message is None or {message.sender_id, message.receiver_id} != set(participants):
                return None
            return reply_summary(message)

    async def get_message(self, message_id: int) -> MessageRead | None:
        with self._session("get_message") as session:
            message = session.get(Message, message_id)
            return message_to_read(message) if message is not None else None

    async def update_user_last_active(self, user_id: str, when: datetime) -> None:
        with self._session("update_user_last_active") as session:
            session.execute(update(User).where(User.id == user_id).values(last_active=when))
            session.commit()

    async def find_undelivered_messages(self, user_id: str) -> list[MessageRead]:
        with self._session("find_undelivered_messages") as session:
            rows = session.execute(
                select(Message)
                .where(
                    Message.receiver_id == user_id,
                    Message.delivered.is_(False),
                    Message.deleted_for_everyone.is_(False),
                )
                .order_by(Message.id)
            ).scalars()
            return [message_to_read(message) for message in rows]

    async def mark_messages_delivered(self, message_ids: Sequence[int]) -> int:
        if not message_ids:
            return 0
        with self._session("mark_messages_delivered") as session:
            result = session.execute(
                update(Message)
                .where(Message.id.in_(list(message_ids)), Message.delivered.is_(False))
                .values(delivered=True)
            )
            session.commit()
            return int(result.rowcount or 0)

    async def mark_message_seen(self, message_id: int, when: datetime) -> MessageRead | None:
        with self._session("mark_message_seen") as session:
            message = session.get(Message, message_id)
            if message is None:
                return None
            # seen implies delivered; the first seen time wins.
            message.delivered = True
            if not message.seen:
                message.seen = True
                message.seen_at = when
            session.commit()
            return message_to_read(message)
