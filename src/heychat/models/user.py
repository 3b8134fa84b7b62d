"""SQLAlchemy models for user accounts and blocks."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from heychat.db.session import Base
from heychat.db.time import utcnow

# Directed: blocker_id has blocked blocked_id.
user_block = Table(
    "user_block",
    Base.metadata,
    Column("blocker_id", String(32), ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True),
    Column("blocked_id", String(32), ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True),
)


def new_user_id() -> str:
    """Return a fresh opaque user identifier."""
    return uuid.uuid4().hex


class User(Base):
    """A messaging principal."""

    __tablename__ = "user_account"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_user_id)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_admin: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_banned: Mapped[bool] = mapped_column(default=False, nullable=False)
    last_active: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    blocked: Mapped[list[User]] = relationship(
        "User",
        secondary=user_block,
        primaryjoin=lambda: User.id == user_block.c.blocker_id,
        secondaryjoin=lambda: User.id == user_block.c.blocked_id,
        lazy="selectin",
    )

    def has_blocked(self, other_id: str) -> bool:
        """Return True if this user has blocked ``other_id``."""
        return any(user.id == other_id for user in self.blocked)
