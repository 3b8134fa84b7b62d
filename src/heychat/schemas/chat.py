"""Chat, contact and user record schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .message import MessageRead


class UserRecord(BaseModel):
    """Fields of a user the realtime core depends on."""

    id: str
    username: str
    display_name: str = ""
    is_admin: bool = False
    is_banned: bool = False
    last_active: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConversationRecord(BaseModel):
    """An accepted conversation as seen by the realtime core."""

    id: int
    participants: tuple[str, str]
    status: str
    last_message_id: int | None = None


class ChatSummary(BaseModel):
    """Entry of the caller's chat list."""

    id: int
    other_user: UserRecord
    last_message: MessageRead | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactRequestRead(BaseModel):
    """A contact request addressed to the caller."""

    id: int
    from_user_id: str
    status: str
    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactsResponse(BaseModel):
    """Contacts (accepted chats) and pending incoming requests."""

    friends: list[UserRecord]
    requests: list[ContactRequestRead]

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
