"""Abuse report submission."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status

from heychat.api.v1.dependencies import CurrentUserDep, SessionDep
from heychat.models import Message, Report, User
from heychat.schemas import ReportCreate

from .admin import serialize_report

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_report(payload: ReportCreate, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """File a report about a user or one of the caller's conversations' messages."""
    reason = payload.reason.strip()
    if not reason:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reason is required")

    reported_user_id = payload.reported_user
    if payload.message_id is not None:
        message = db.get(Message, payload.message_id)
        # Only messages the reporter took part in can be reported.
        if message is None or current_user.id not in (message.sender_id, message.receiver_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
        if reported_user_id is None:
            reported_user_id = (
                message.sender_id if message.receiver_id == current_user.id else message.receiver_id
            )

    if reported_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A reported user or message is required",
        )
    if db.get(User, reported_user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    report = Report(
        reported_by_id=current_user.id,
        reported_user_id=reported_user_id,
        message_id=payload.message_id,
        reason=reason,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    return {"message": "Report submitted", "report": serialize_report(db, report)}
