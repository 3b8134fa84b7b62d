"""Message-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

MessageType = Literal["text", "image", "audio", "video"]


class ReplySummary(BaseModel):
    """Minimal fields of a replied-to message shown alongside a reply."""

    id: int
    content: str
    type: MessageType
    sender: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageRead(BaseModel):
    """Full message record as emitted to clients."""

    id: int
    chat_id: int | None = None
    sender: str
    receiver: str
    content: str
    type: MessageType
    file_url: str = ""
    reply_to: ReplySummary | None = None
    forwarded: bool = False
    delivered: bool
    seen: bool
    seen_at: datetime | None = None
    deleted_for_everyone: bool = False
    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_serializer("seen_at", "created_at")
    def serialize_timestamp(self, value: datetime | None) -> str | None:
        """Render timestamps as ISO-8601 strings."""
        return value.isoformat() if value is not None else None

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase JSON payload for the wire."""
        return self.model_dump(mode="json", by_alias=True)


class MessageDraft(BaseModel):
    """Values needed to persist a new message."""

    sender_id: str
    receiver_id: str
    content: str = ""
    type: MessageType = "text"
    file_url: str = ""
    reply_to_id: int | None = None
    forwarded: bool = False
    delivered: bool = False


class DeleteMessageRequest(BaseModel):
    """Body of the HTTP delete-message call."""

    delete_for_everyone: bool = Field(False, alias="deleteForEveryone")

    model_config = ConfigDict(populate_by_name=True)


class ForwardMessageRequest(BaseModel):
    """Body of the HTTP forward-message call."""

    message_id: int = Field(..., alias="messageId")
    to_user_id: str = Field(..., alias="toUserId")

    model_config = ConfigDict(populate_by_name=True)
