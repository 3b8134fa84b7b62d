"""Schemas for user lookup, abuse reports and the admin surface."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .chat import UserRecord

ReportStatus = Literal["pending", "reviewed", "dismissed"]


class UserProfile(BaseModel):
    """Public view of another user."""

    id: str
    username: str
    display_name: str = ""
    last_active: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserBrief(BaseModel):
    id: str
    username: str
    display_name: str = ""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageBrief(BaseModel):
    id: int
    content: str
    type: str


class ReportCreate(BaseModel):
    """Body of ``POST /reports``."""

    reported_user: str | None = Field(None, alias="reportedUser")
    message_id: int | None = Field(None, alias="messageId")
    reason: str = ""

    model_config = ConfigDict(populate_by_name=True)


class ReportRead(BaseModel):
    """A report with the people and message it refers to."""

    id: int
    reported_by: UserBrief | None = None
    reported_user: UserBrief | None = None
    message: MessageBrief | None = None
    reason: str
    status: ReportStatus
    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportStatusUpdate(BaseModel):
    status: ReportStatus


class AdminUserRead(UserRecord):
    """User row as listed on the admin surface."""

    created_at: datetime | None = None


class AdminStats(BaseModel):
    """Counters shown on the admin dashboard."""

    total_users: int
    active_users: int
    total_messages: int
    total_reports: int
    banned_users: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
