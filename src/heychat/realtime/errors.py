"""Error taxonomy for the realtime delivery and presence core."""

from __future__ import annotations


class RealtimeError(Exception):
    """Base class for every error raised inside the realtime core."""


class AuthenticationError(RealtimeError):
    """No credential was presented when opening a connection."""


class InvalidCredentialError(AuthenticationError):
    """The credential was malformed, expired or carried a bad signature."""


class NoActiveConversationError(RealtimeError):
    """Routing precondition failed: the users have no accepted chat."""

    client_message = "No active chat with this user"


class StorageError(RealtimeError):
    """A persistence call failed; the operation is aborted without emission."""


class SilentDrop(RealtimeError):
    """The event is intentionally discarded without telling the client."""


class InvalidEventError(RealtimeError):
    """The inbound frame is malformed or names an unknown event."""


class ForbiddenEventError(RealtimeError):
    """The connection's identity may not perform this event."""
