"""Chat history, deletion and forwarding endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import and_, exists, or_, select
from sqlalchemy.orm import Session

from heychat.api.v1.dependencies import CurrentUserDep, HubDep, SessionDep
from heychat.core.settings import settings
from heychat.models import Chat, Message, User, message_hidden
from heychat.models.chat import CHAT_STATUS_ACCEPTED, ordered_pair
from heychat.realtime import NoActiveConversationError, SilentDrop, StorageError
from heychat.realtime.store import message_to_read, reply_summary, user_to_record
from heychat.schemas import ChatSummary, DeleteMessageRequest, ForwardMessageRequest, PrivateMessageIntent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["chats"])


def _hidden_for(user_id: str) -> Any:
    """SQL condition true for messages the user deleted for themselves."""
    return exists().where(
        and_(
            message_hidden.c.message_id == Message.id,
            message_hidden.c.user_id == user_id,
        )
    )


def _serialize_messages(db: Session, messages: list[Message]) -> list[dict[str, Any]]:
    reply_ids = {m.reply_to_id for m in messages if m.reply_to_id is not None}
    replies = {}
    if reply_ids:
        replies = {
            m.id: reply_summary(m)
            for m in db.query(Message).filter(Message.id.in_(reply_ids)).all()
        }
    return [
        message_to_read(m, replies.get(m.reply_to_id) if m.reply_to_id else None).to_payload()
        for m in messages
    ]


def _get_chat_for(db: Session, chat_id: int, user_id: str) -> Chat:
    chat = db.get(Chat, chat_id)
    if chat is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    if user_id not in chat.participants:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
    return chat


@router.get("/")
async def list_chats(current_user: CurrentUserDep, db: SessionDep) -> list[dict[str, Any]]:
    """List the caller's accepted chats with their latest message."""
    chats = (
        db.query(Chat)
        .filter(
            Chat.status == CHAT_STATUS_ACCEPTED,
            or_(Chat.user_low_id == current_user.id, Chat.user_high_id == current_user.id),
        )
        .order_by(Chat.updated_at.desc())
        .all()
    )

    summaries = []
    for chat in chats:
        other = db.get(User, chat.other_participant(current_user.id))
        if other is None:  # pragma: no cover - foreign keys keep this consistent
            continue
        last = db.get(Message, chat.last_message_id) if chat.last_message_id else None
        summary = ChatSummary(
            id=chat.id,
            other_user=user_to_record(other),
            last_message=message_to_read(last) if last is not None else None,
        )
        summaries.append(summary.model_dump(mode="json", by_alias=True))
    return summaries


@router.get("/with/{user_id}")
async def get_chat_with(user_id: str, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Return the chat between the caller and ``user_id`` in any state."""
    low, high = ordered_pair(current_user.id, user_id)
    chat = db.query(Chat).filter(Chat.user_low_id == low, Chat.user_high_id == high).first()
    if chat is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return {
        "id": chat.id,
        "participants": list(chat.participants),
        "status": chat.status,
        "lastMessageId": chat.last_message_id,
    }


@router.get("/{chat_id}/messages")
async def get_messages(
    chat_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(settings.history_page_size, ge=1, le=200),
    before: int | None = Query(None),
) -> list[dict[str, Any]]:
    """Return the visible history of a chat, oldest first."""
    _get_chat_for(db, chat_id, current_user.id)

    query = db.query(Message).filter(
        Message.chat_id == chat_id,
        Message.deleted_for_everyone.is_(False),
        ~_hidden_for(current_user.id),
    )
    if before is not None:
        query = query.filter(Message.id < before)

    messages = query.order_by(Message.id.desc()).limit(limit).all()
    messages.reverse()
    return _serialize_messages(db, messages)


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: int,
    body: DeleteMessageRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    hub: HubDep,
) -> dict[str, Any]:
    """Delete a message for everyone (sender only) or just for the caller."""
    message = db.get(Message, message_id)
    if message is None or current_user.id not in (message.sender_id, message.receiver_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    if body.delete_for_everyone:
        if message.sender_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Can only delete your own messages for everyone",
            )
        message.deleted_for_everyone = True
        message.content = settings.deleted_message_placeholder
        db.commit()
        await hub.deletion.delete_for_everyone(message.id, message.receiver_id)
    else:
        already_hidden = db.execute(
            select(message_hidden).where(
                message_hidden.c.message_id == message.id,
                message_hidden.c.user_id == current_user.id,
            )
        ).first()
        if already_hidden is None:
            db.execute(message_hidden.insert().values(message_id=message.id, user_id=current_user.id))
            db.commit()

    return {"message": "Message deleted", "deleteForEveryone": body.delete_for_everyone}


@router.post("/forward", status_code=status.HTTP_201_CREATED)
async def forward_message(
    payload: ForwardMessageRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    hub: HubDep,
) -> dict[str, Any]:
    """Forward a message the caller can see to another contact."""
    original = db.get(Message, payload.message_id)
    if (
        original is None
        or original.deleted_for_everyone
        or current_user.id not in (original.sender_id, original.receiver_id)
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    intent = PrivateMessageIntent(
        to=payload.to_user_id,
        content=original.content,
        type=original.type,
        file_url=original.file_url,
    )
    try:
        forwarded = await hub.router.route(current_user.id, intent, forwarded=True)
    except NoActiveConversationError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=err.client_message) from err
    except SilentDrop as err:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot message this user") from err
    except StorageError as err:
        logger.error("Forwarding message %s failed: %s", original.id, err)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to forward message",
        ) from err
    return forwarded.to_payload()


@router.post("/{chat_id}/clear")
async def clear_chat(chat_id: int, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Hide every message of the chat for the caller only."""
    _get_chat_for(db, chat_id, current_user.id)

    visible_ids = [
        message_id
        for (message_id,) in db.query(Message.id)
        .filter(Message.chat_id == chat_id, ~_hidden_for(current_user.id))
        .all()
    ]
    if visible_ids:
        db.execute(
            message_hidden.insert(),
            [{"message_id": mid, "user_id": current_user.id} for mid in visible_ids],
        )
        db.commit()
    return {"message": "Chat cleared", "hidden": len(visible_ids)}
