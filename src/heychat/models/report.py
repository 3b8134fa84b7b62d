"""Abuse reports filed by users and reviewed by administrators."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from heychat.db.session import Base
from heychat.db.time import utcnow

REPORT_STATUS_PENDING = "pending"
REPORT_STATUS_REVIEWED = "reviewed"
REPORT_STATUS_DISMISSED = "dismissed"
REPORT_STATUSES = (REPORT_STATUS_PENDING, REPORT_STATUS_REVIEWED, REPORT_STATUS_DISMISSED)


class Report(Base):
    """A report about a user, optionally pointing at one of their messages."""

    __tablename__ = "report"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reported_by_id: Mapped[str] = mapped_column(String(32), ForeignKey("user_account.id"), nullable=False)
    reported_user_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("user_account.id"), nullable=True
    )
    message_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("message.id"), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=REPORT_STATUS_PENDING)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
