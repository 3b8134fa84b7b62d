"""User lookup endpoints: search and public profiles."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, or_

from heychat.api.v1.dependencies import CurrentUserDep, SessionDep
from heychat.core.settings import settings
from heychat.db.time import as_utc
from heychat.models import User
from heychat.schemas import UserProfile

router = APIRouter(prefix="/users", tags=["users"])


def _profile(user: User) -> dict[str, Any]:
    return UserProfile(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        last_active=as_utc(user.last_active),
        created_at=as_utc(user.created_at),
    ).model_dump(mode="json", by_alias=True)


@router.get("/search")
async def search_users(
    current_user: CurrentUserDep,
    db: SessionDep,
    query: str = Query(""),
) -> list[dict[str, Any]]:
    """Find users by username or display name (case-insensitive substring)."""
    needle = query.strip().lower()
    if not needle:
        return []

    users = (
        db.query(User)
        .filter(
            or_(
                func.lower(User.username).contains(needle, autoescape=True),
                func.lower(User.display_name).contains(needle, autoescape=True),
            ),
            User.id != current_user.id,
            User.is_banned.is_(False),
        )
        .order_by(User.username)
        .limit(settings.search_result_limit)
        .all()
    )
    return [_profile(user) for user in users]


@router.get("/profile/{user_id}")
async def get_profile(user_id: str, current_user: CurrentUserDep, db: SessionDep) -> dict[str, Any]:
    """Return the public profile of ``user_id``."""
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _profile(user)
