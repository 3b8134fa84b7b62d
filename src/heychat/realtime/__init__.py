"""Real-time message delivery and presence."""

from .connection import Connection, WebSocketConnection
from .errors import (
    AuthenticationError,
    ForbiddenEventError,
    InvalidCredentialError,
    InvalidEventError,
    NoActiveConversationError,
    RealtimeError,
    SilentDrop,
    StorageError,
)
from .hub import HandlerResult, RealtimeHub
from .identity import Identity, IdentityVerifier
from .presence import PresenceDirectory
from .store import ChatStore, SqlChatStore

__all__ = [
    "AuthenticationError",
    "ChatStore",
    "Connection",
    "ForbiddenEventError",
    "HandlerResult",
    "Identity",
    "IdentityVerifier",
    "InvalidCredentialError",
    "InvalidEventError",
    "NoActiveConversationError",
    "PresenceDirectory",
    "RealtimeError",
    "RealtimeHub",
    "SilentDrop",
    "SqlChatStore",
    "StorageError",
    "WebSocketConnection",
]
