"""Pydantic schemas for the HeyChat relay."""

from .chat import ChatSummary, ContactRequestRead, ContactsResponse, ConversationRecord, UserRecord
from .events import (
    DeleteMessageEvent,
    InboundFrame,
    MessageSeenEvent,
    PrivateMessageIntent,
    TypingEvent,
)
from .message import (
    DeleteMessageRequest,
    ForwardMessageRequest,
    MessageDraft,
    MessageRead,
    ReplySummary,
)
from .moderation import (
    AdminStats,
    AdminUserRead,
    MessageBrief,
    ReportCreate,
    ReportRead,
    ReportStatusUpdate,
    UserBrief,
    UserProfile,
)

__all__ = [
    "ChatSummary",
    "ContactRequestRead",
    "ContactsResponse",
    "ConversationRecord",
    "UserRecord",
    "DeleteMessageEvent",
    "InboundFrame",
    "MessageSeenEvent",
    "PrivateMessageIntent",
    "TypingEvent",
    "DeleteMessageRequest",
    "ForwardMessageRequest",
    "MessageDraft",
    "MessageRead",
    "ReplySummary",
    "AdminStats",
    "AdminUserRead",
    "MessageBrief",
    "ReportCreate",
    "ReportRead",
    "ReportStatusUpdate",
    "UserBrief",
    "UserProfile",
]
