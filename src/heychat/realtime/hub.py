"""Connection lifecycle and the uniform event dispatch loop.

Every inbound frame goes through :meth:`RealtimeHub.dispatch`, which turns
the handler's outcome into a :class:`HandlerResult` and logs it in one place.
Handlers raise errors from :mod:`heychat.realtime.errors`; none of them can
close the connection or escape the dispatch boundary.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError
from starlette import status

from heychat.db.time import utcnow
from heychat.schemas import DeleteMessageEvent, InboundFrame, MessageSeenEvent, PrivateMessageIntent, TypingEvent

from .connection import Connection
from .conversations import ConversationResolver
from .deletion import DeletionPropagator
from .errors import (
    ForbiddenEventError,
    InvalidCredentialError,
    InvalidEventError,
    NoActiveConversationError,
    SilentDrop,
    StorageError,
)
from .identity import Identity, IdentityVerifier
from .indicators import TypingBroadcaster
from .presence import PresenceDirectory
from .router import MessageRouter
from .status import StatusPropagator
from .store import ChatStore

logger = logging.getLogger(__name__)

ERROR_EVENT = "error"

Handler = Callable[[Identity, Connection, dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class HandlerResult:
    """Outcome of dispatching one inbound frame."""

    event: str
    status: Literal["ok", "dropped", "failed"]
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class RealtimeHub:
    """Wires the realtime components around one presence directory."""

    def __init__(
        self,
        store: ChatStore,
        presence: PresenceDirectory | None = None,
        verifier: IdentityVerifier | None = None,
    ) -> None:
        self.store = store
        self.presence = presence or PresenceDirectory()
        self.verifier = verifier or IdentityVerifier()
        self.conversations = ConversationResolver(store)
        self.router = MessageRouter(store, self.presence, self.conversations)
        self.status = StatusPropagator(store, self.presence)
        self.typing = TypingBroadcaster(self.presence)
        self.deletion = DeletionPropagator(self.presence)
        self._handlers: dict[str, Handler] = {
            "privateMessage": self._on_private_message,
            "typing": self._on_typing,
            "stopTyping": self._on_stop_typing,
            "messageSeen": self._on_message_seen,
            "deleteMessage": self._on_delete_message,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def authenticate(self, token: str | None) -> Identity:
        """Validate the connect-time credential.

        Raises:
            AuthenticationError: Missing token.
            InvalidCredentialError: Bad token, unknown or banned account.
        """
        identity = self.verifier.verify(token)
        if identity.is_admin:
            return identity
        try:
            user = await self.store.find_user_by_id(identity.user_id)
        except StorageError as err:
            raise InvalidCredentialError("Could not validate credentials") from err
        if user is None:
            raise InvalidCredentialError("User not found")
        if user.is_banned:
            raise InvalidCredentialError("Account banned")
        if user.is_admin:
            return Identity(user_id=identity.user_id, is_admin=True)
        return identity

    async def connect(self, identity: Identity, connection: Connection) -> None:
        """Register a freshly authenticated connection and flush its backlog."""
        logger.info("User connected: %s (%r)", identity.user_id, connection)
        if identity.is_admin:
            return

        await self.presence.register(identity.user_id, connection)
        try:
            await self.store.update_user_last_active(identity.user_id, utcnow())
            await self.status.flush_backlog(identity.user_id)
        except StorageError as err:
            logger.warning("Backlog flush for %s aborted: %s", identity.user_id, err)

    async def disconnect(self, identity: Identity, connection: Connection) -> None:
        """Deregister a handle; in-flight work for it still completes."""
        logger.info("User disconnected: %s (%r)", identity.user_id, connection)
        if identity.is_admin:
            return

        now = utcnow()
        await self.presence.remove(identity.user_id, connection, now)
        try:
            await self.store.update_user_last_active(identity.user_id, now)
        except StorageError as err:
            logger.warning("Could not record last activity of %s: %s", identity.user_id, err)

    async def evict(self, user_id: str) -> int:
        """Close and deregister every live handle of ``user_id``.

        Used when an account is banned or deleted. Returns the number of
        handles closed.
        """
        handles = self.presence.lookup(user_id)
        for connection in handles:
            await self.presence.remove(user_id, connection)
            await connection.close(status.WS_1008_POLICY_VIOLATION)
        if handles:
            logger.info("Evicted %d connection(s) of %s", len(handles), user_id)
        return len(handles)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(
        self,
        identity: Identity,
        connection: Connection,
        raw: str | bytes | dict[str, Any],
    ) -> HandlerResult:
        """Handle one inbound frame and report what happened."""
        event = "?"
        try:
            frame = self._parse(raw)
            event = frame.event
            handler = self._handlers.get(event)
            if handler is None:
                raise InvalidEventError(f"unknown event {event!r}")
            if identity.is_admin:
                raise SilentDrop("administrative connections do not message")
            await handler(identity, connection, frame.data)
        except NoActiveConversationError as err:
            await connection.send(ERROR_EVENT, {"message": err.client_message})
            result = HandlerResult(event, "failed", err)
        except (SilentDrop, InvalidEventError, ForbiddenEventError) as err:
            result = HandlerResult(event, "dropped", err)
        except StorageError as err:
            result = HandlerResult(event, "failed", err)
        except Exception as err:
            logger.exception("Unhandled error while handling %s from %s", event, identity.user_id)
            result = HandlerResult(event, "failed", err)
        else:
            result = HandlerResult(event, "ok")

        self._log_result(identity, result)
        return result

    @staticmethod
    def _parse(raw: str | bytes | dict[str, Any]) -> InboundFrame:
        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
            return InboundFrame.model_validate(data)
        except (ValueError, ValidationError) as err:
            raise InvalidEventError("malformed frame") from err

    @staticmethod
    def _log_result(identity: Identity, result: HandlerResult) -> None:
        if result.status == "ok":
            logger.debug("%s from %s handled", result.event, identity.user_id)
        elif result.status == "dropped":
            logger.info("%s from %s dropped: %s", result.event, identity.user_id, result.error)
        elif isinstance(result.error, (StorageError, NoActiveConversationError)):
            logger.warning("%s from %s failed: %s", result.event, identity.user_id, result.error)
        # Unexpected errors were already logged with their traceback.

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _payload(model: type[Any], data: dict[str, Any]) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as err:
            raise InvalidEventError(f"invalid {model.__name__} payload") from err

    async def _on_private_message(self, identity: Identity, connection: Connection, data: dict[str, Any]) -> None:
        intent: PrivateMessageIntent = self._payload(PrivateMessageIntent, data)
        await self.router.route(identity.user_id, intent, origin=connection)

    async def _on_typing(self, identity: Identity, connection: Connection, data: dict[str, Any]) -> None:
        payload: TypingEvent = self._payload(TypingEvent, data)
        await self.typing.typing(identity.user_id, payload.to)

    async def _on_stop_typing(self, identity: Identity, connection: Connection, data: dict[str, Any]) -> None:
        payload: TypingEvent = self._payload(TypingEvent, data)
        await self.typing.stop_typing(identity.user_id, payload.to)

    async def _on_message_seen(self, identity: Identity, connection: Connection, data: dict[str, Any]) -> None:
        payload: MessageSeenEvent = self._payload(MessageSeenEvent, data)
        updated = await self.status.mark_seen(identity.user_id, payload.message_id, payload.sender_id)
        if updated is None:
            raise SilentDrop(f"message {payload.message_id} not found")

    async def _on_delete_message(self, identity: Identity, connection: Connection, data: dict[str, Any]) -> None:
        payload: DeleteMessageEvent = self._payload(DeleteMessageEvent, data)
        if not payload.delete_for_everyone:
            return
        message = await self.store.get_message(payload.message_id)
        if message is None:
            raise SilentDrop(f"message {payload.message_id} not found")
        if message.sender != identity.user_id:
            raise ForbiddenEventError(f"{identity.user_id} did not send message {message.id}")
        if not message.deleted_for_everyone:
            raise SilentDrop(f"message {message.id} has not been deleted for everyone")
        await self.deletion.delete_for_everyone(message.id, message.receiver)
