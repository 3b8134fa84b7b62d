"""Schemas for inbound realtime frames."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .message import MessageType


class InboundFrame(BaseModel):
    """Envelope of every client frame: ``{"event": ..., "data": {...}}``."""

    event: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class PrivateMessageIntent(BaseModel):
    """Outbound message intent sent with the ``privateMessage`` event."""

    to: str = Field(..., min_length=1)
    content: str = ""
    type: MessageType = "text"
    file_url: str = Field("", alias="fileUrl")
    reply_to: int | None = Field(None, alias="replyTo")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("content", "file_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> Any:
        return value or "text"


class TypingEvent(BaseModel):
    """Payload of ``typing`` and ``stopTyping``."""

    to: str = Field(..., min_length=1)


class MessageSeenEvent(BaseModel):
    """Payload of the client ``messageSeen`` event."""

    message_id: int = Field(..., alias="messageId")
    sender_id: str | None = Field(None, alias="senderId")

    model_config = ConfigDict(populate_by_name=True)


class DeleteMessageEvent(BaseModel):
    """Payload of the client ``deleteMessage`` event."""

    message_id: int = Field(..., alias="messageId")
    delete_for_everyone: bool = Field(False, alias="deleteForEveryone")
    receiver_id: str | None = Field(None, alias="receiverId")

    model_config = ConfigDict(populate_by_name=True)
