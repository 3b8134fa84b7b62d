"""Contact request and block endpoints.

Accepting a request is the only place conversations are created; the
realtime core only ever reads them.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from heychat.api.v1.dependencies import CurrentUserDep, SessionDep
from heychat.models import Chat, ContactRequest, User
from heychat.models.chat import (
    CHAT_STATUS_ACCEPTED,
    CHAT_STATUS_PENDING,
    CHAT_STATUS_REJECTED,
    ordered_pair,
)
from heychat.realtime.store import user_to_record
from heychat.schemas import ContactRequestRead, ContactsResponse

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _chat_between(db: Session, user_a: str, user_b: str) -> Chat | None:
    low, high = ordered_pair(user_a, user_b)
    return db.query(Chat).filter(Chat.user_low_id == low, Chat.user_high_id == high).first()


def _get_incoming_request(db: Session, request_id: int, user_id: str) -> ContactRequest:
    request = db.get(ContactRequest, request_id)
    if request is None or request.to_user_id != user_id or request.status != CHAT_STATUS_PENDING:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    return request


@router.get("/")
async def get_contacts(current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Return accepted contacts and pending incoming requests."""
    chats = (
        db.query(Chat)
        .filter(
            Chat.status == CHAT_STATUS_ACCEPTED,
            or_(Chat.user_low_id == current_user.id, Chat.user_high_id == current_user.id),
        )
        .all()
    )
    friend_ids = [chat.other_participant(current_user.id) for chat in chats]
    friends = db.query(User).filter(User.id.in_(friend_ids)).order_by(User.username).all() if friend_ids else []

    requests = (
        db.query(ContactRequest)
        .filter(
            ContactRequest.to_user_id == current_user.id,
            ContactRequest.status == CHAT_STATUS_PENDING,
        )
        .order_by(ContactRequest.created_at)
        .all()
    )
    response = ContactsResponse(
        friends=[user_to_record(user) for user in friends],
        requests=[
            ContactRequestRead(
                id=request.id,
                from_user_id=request.from_user_id,
                status=request.status,
                created_at=request.created_at,
            )
            for request in requests
        ],
    )
    return response.model_dump(mode="json", by_alias=True)


@router.post("/requests/{user_id}", status_code=status.HTTP_201_CREATED)
async def send_request(user_id: str, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Ask ``user_id`` to start chatting."""
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot send request to yourself")

    target = db.get(User, user_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if target.has_blocked(current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot send request to this user")

    chat = _chat_between(db, current_user.id, user_id)
    if chat is not None and chat.status == CHAT_STATUS_ACCEPTED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already contacts")

    pending = (
        db.query(ContactRequest)
        .filter(
            ContactRequest.from_user_id == current_user.id,
            ContactRequest.to_user_id == user_id,
            ContactRequest.status == CHAT_STATUS_PENDING,
        )
        .first()
    )
    if pending is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request already sent")

    request = ContactRequest(from_user_id=current_user.id, to_user_id=user_id)
    db.add(request)
    db.commit()
    db.refresh(request)
    return {"message": "Request sent", "requestId": request.id}


@router.post("/requests/{request_id}/accept")
async def accept_request(request_id: int, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Accept a pending request, creating the accepted chat."""
    request = _get_incoming_request(db, request_id, current_user.id)
    request.status = CHAT_STATUS_ACCEPTED

    chat = _chat_between(db, request.from_user_id, current_user.id)
    if chat is None:
        low, high = ordered_pair(request.from_user_id, current_user.id)
        chat = Chat(user_low_id=low, user_high_id=high, requested_by_id=request.from_user_id)
        db.add(chat)
    chat.status = CHAT_STATUS_ACCEPTED
    db.commit()
    db.refresh(chat)
    return {"message": "Request accepted", "chatId": chat.id}


@router.post("/requests/{request_id}/reject")
async def reject_request(request_id: int, current_user: CurrentUserDep, db: SessionDep) -> dict[str, str]:
    """Reject a pending request."""
    request = _get_incoming_request(db, request_id, current_user.id)
    request.status = CHAT_STATUS_REJECTED
    db.commit()
    return {"message": "Request rejected"}


@router.post("/block/{user_id}")
async def toggle_block(user_id: str, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Block ``user_id`` or lift an existing block."""
    target = db.get(User, user_id)
    if target is None or target.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if current_user.has_blocked(user_id):
        current_user.blocked = [user for user in current_user.blocked if user.id != user_id]
        blocked = False
    else:
        current_user.blocked.append(target)
        blocked = True
    db.commit()
    return {"blocked": blocked, "message": "User blocked" if blocked else "User unblocked"}
