"""Administrative moderation endpoints.

Every route requires an administrator account. Bans and deletions also close
the affected user's live realtime connections.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from heychat.api.v1.dependencies import AdminUserDep, HubDep, SessionDep
from heychat.core.settings import settings
from heychat.db.time import as_utc, utcnow
from heychat.models import Chat, ContactRequest, Message, Report, User, message_hidden, user_block
from heychat.realtime.store import user_to_record
from heychat.schemas import (
    AdminStats,
    AdminUserRead,
    MessageBrief,
    ReportRead,
    ReportStatusUpdate,
    UserBrief,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _brief(db: Session, user_id: str | None) -> UserBrief | None:
    user = db.get(User, user_id) if user_id else None
    if user is None:
        return None
    return UserBrief(id=user.id, username=user.username, display_name=user.display_name)


def serialize_report(db: Session, report: Report) -> dict[str, Any]:
    """Render a report with its reporter, reported user and message resolved."""
    message = db.get(Message, report.message_id) if report.message_id else None
    return ReportRead(
        id=report.id,
        reported_by=_brief(db, report.reported_by_id),
        reported_user=_brief(db, report.reported_user_id),
        message=MessageBrief(id=message.id, content=message.content, type=message.type) if message else None,
        reason=report.reason,
        status=report.status,
        created_at=as_utc(report.created_at) or utcnow(),
    ).model_dump(mode="json", by_alias=True)


def _get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.is_admin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot moderate an administrator")
    return user


@router.get("/stats")
async def get_stats(admin: AdminUserDep, db: SessionDep) -> dict[str, Any]:
    """Return dashboard counters."""
    active_since = utcnow() - timedelta(minutes=settings.active_window_minutes)

    def count(model: Any, *criteria: Any) -> int:
        return db.execute(select(func.count()).select_from(model).where(*criteria)).scalar_one()

    stats = AdminStats(
        total_users=count(User, User.is_admin.is_(False)),
        active_users=count(User, User.is_admin.is_(False), User.last_active >= active_since),
        total_messages=count(Message),
        total_reports=count(Report),
        banned_users=count(User, User.is_banned.is_(True)),
    )
    return stats.model_dump(by_alias=True)


@router.get("/users")
async def list_users(admin: AdminUserDep, db: SessionDep) -> list[dict[str, Any]]:
    """List every non-admin account, newest first."""
    users = db.query(User).filter(User.is_admin.is_(False)).order_by(User.created_at.desc()).all()
    return [
        AdminUserRead(
            **user_to_record(user).model_dump(),
            created_at=as_utc(user.created_at),
        ).model_dump(mode="json", by_alias=True)
        for user in users
    ]


@router.post("/ban/{user_id}")
async def toggle_ban(user_id: str, admin: AdminUserDep, db: SessionDep, hub: HubDep) -> dict[str, Any]:
    """Ban ``user_id`` or lift an existing ban."""
    user = _get_user(db, user_id)
    user.is_banned = not user.is_banned
    db.commit()

    if user.is_banned:
        await hub.evict(user.id)
    logger.info("Admin %s %s user %s", admin.id, "banned" if user.is_banned else "unbanned", user.id)
    return {"isBanned": user.is_banned, "message": "User banned" if user.is_banned else "User unbanned"}


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, admin: AdminUserDep, db: SessionDep, hub: HubDep) -> dict[str, str]:
    """Delete an account together with its chats, messages and reports."""
    user = _get_user(db, user_id)
    # Rows are removed with bulk deletes, so the ORM must not track the user.
    db.expunge(user)

    message_ids = select(Message.id).where(or_(Message.sender_id == user.id, Message.receiver_id == user.id))
    db.execute(
        delete(message_hidden).where(
            or_(message_hidden.c.user_id == user.id, message_hidden.c.message_id.in_(message_ids))
        )
    )
    db.execute(
        delete(Report).where(
            or_(
                Report.reported_by_id == user.id,
                Report.reported_user_id == user.id,
                Report.message_id.in_(message_ids),
            )
        )
    )
    db.execute(delete(Message).where(or_(Message.sender_id == user.id, Message.receiver_id == user.id)))
    db.execute(delete(Chat).where(or_(Chat.user_low_id == user.id, Chat.user_high_id == user.id)))
    db.execute(
        delete(ContactRequest).where(
            or_(ContactRequest.from_user_id == user.id, ContactRequest.to_user_id == user.id)
        )
    )
    db.execute(delete(user_block).where(or_(user_block.c.blocker_id == user.id, user_block.c.blocked_id == user.id)))
    db.execute(delete(User).where(User.id == user.id))
    db.commit()

    await hub.evict(user_id)
    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return {"message": "User deleted"}


@router.get("/reports")
async def list_reports(admin: AdminUserDep, db: SessionDep) -> list[dict[str, Any]]:
    """List all reports, newest first."""
    reports = db.query(Report).order_by(Report.created_at.desc(), Report.id.desc()).all()
    return [serialize_report(db, report) for report in reports]


@router.patch("/reports/{report_id}")
async def update_report_status(
    report_id: int,
    payload: ReportStatusUpdate,
    admin: AdminUserDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Mark a report reviewed or dismissed."""
    report = db.get(Report, report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    report.status = payload.status
    db.commit()
    return serialize_report(db, report)


@router.delete("/messages/{message_id}")
async def remove_message(message_id: int, admin: AdminUserDep, db: SessionDep, hub: HubDep) -> dict[str, str]:
    """Remove an abusive message for both participants."""
    message = db.get(Message, message_id)
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    message.deleted_for_everyone = True
    message.content = settings.admin_removed_placeholder
    db.commit()

    for participant in (message.sender_id, message.receiver_id):
        await hub.deletion.delete_for_everyone(message.id, participant)
    logger.info("Admin %s removed message %s", admin.id, message.id)
    return {"message": "Message removed"}
