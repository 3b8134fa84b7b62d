"""Models describing direct messages between users."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column

from heychat.db.session import Base
from heychat.db.time import utcnow

MESSAGE_TYPES = ("text", "image", "audio", "video")

# "Delete for me": the message stays in storage but is hidden from user_id.
message_hidden = Table(
    "message_hidden",
    Base.metadata,
    Column("message_id", Integer, ForeignKey("message.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(32), ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True),
)


class Message(Base):
    """Message exchanged between two participants of an accepted chat."""

    __tablename__ = "message"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("chat.id"), nullable=True, index=True)

    sender_id: Mapped[str] = mapped_column(String(32), ForeignKey("user_account.id"), nullable=False)
    receiver_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("user_account.id"), nullable=False, index=True
    )

    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(8), nullable=False, default="text")
    file_url: Mapped[str] = mapped_column(Text, nullable=False, default="")

    reply_to_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("message.id"), nullable=True)
    forwarded: Mapped[bool] = mapped_column(default=False, nullable=False)

    # Read receipts; seen implies delivered.
    delivered: Mapped[bool] = mapped_column(default=False, nullable=False)
    seen: Mapped[bool] = mapped_column(default=False, nullable=False)
    seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    deleted_for_everyone: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
