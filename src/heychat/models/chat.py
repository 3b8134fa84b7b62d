"""Models describing conversations and the contact requests that create them."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from heychat.db.session import Base
from heychat.db.time import utcnow

CHAT_STATUS_PENDING = "pending"
CHAT_STATUS_ACCEPTED = "accepted"
CHAT_STATUS_REJECTED = "rejected"


def ordered_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Return the two identifiers in canonical (sorted) order."""
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


class Chat(Base):
    """A 1-to-1 conversation between an unordered pair of users."""

    __tablename__ = "chat"
    __table_args__ = (UniqueConstraint("user_low_id", "user_high_id", name="uq_chat_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # The pair is stored sorted so that (a, b) and (b, a) map to the same row.
    user_low_id: Mapped[str] = mapped_column(String(32), ForeignKey("user_account.id"), nullable=False)
    user_high_id: Mapped[str] = mapped_column(String(32), ForeignKey("user_account.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=CHAT_STATUS_PENDING)
    requested_by_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("user_account.id"), nullable=True
    )
    last_message_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    @property
    def participants(self) -> tuple[str, str]:
        return (self.user_low_id, self.user_high_id)

    def other_participant(self, user_id: str) -> str:
        """Return the participant that is not ``user_id``."""
        return self.user_high_id if user_id == self.user_low_id else self.user_low_id


class ContactRequest(Base):
    """Pending, accepted or rejected request to start chatting."""

    __tablename__ = "contact_request"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_user_id: Mapped[str] = mapped_column(String(32), ForeignKey("user_account.id"), nullable=False)
    to_user_id: Mapped[str] = mapped_column(String(32), ForeignKey("user_account.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=CHAT_STATUS_PENDING)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
