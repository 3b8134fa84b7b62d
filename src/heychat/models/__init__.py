"""SQLAlchemy models for the HeyChat relay."""

from .chat import Chat, ContactRequest
from .message import Message, message_hidden
from .report import Report
from .user import User, user_block

__all__ = [
    "Chat", "ContactRequest",
    "Message", "message_hidden",
    "Report",
    "User", "user_block",
]
