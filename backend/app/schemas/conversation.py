"""Directory and thread schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.messaging.types import ParticipantRole
from app.schemas.message import MessageRead


class CounterpartRead(BaseModel):
    """The non-viewer participant of a conversation."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    role: ParticipantRole
    display_name: str
    avatar: str
    specialty: str | None = None
    primary_condition: str | None = None
    secondary_label: str | None = None
    is_online: bool


class ConversationListItem(BaseModel):
    """Directory row."""

    conversation_id: str
    counterpart: CounterpartRead
    unread_count: int
    last_message_preview: str | None
    last_message_at: datetime | None
    last_message_label: str | None
    last_activity_label: str | None
    is_active: bool


class ConversationsListResponse(BaseModel):
    """Directory payload, most recent activity first."""

    items: list[ConversationListItem]
    total: int
    query: str | None = None
    active_conversation_id: str | None = None


class ThreadEntryRead(BaseModel):
    """One rendered message with its optional time divider."""

    divider_label: str | None
    unread_boundary: bool
    message: MessageRead


class ThreadView(BaseModel):
    """Rendering plan for one conversation, or the empty placeholder."""

    conversation_id: str | None = None
    counterpart: CounterpartRead | None = None
    unread_count: int = 0
    is_active: bool = False
    security_label: str
    entries: list[ThreadEntryRead] = Field(default_factory=list)
    scroll_anchor_message_id: int | None = None


class ReadReceiptResult(BaseModel):
    """Rollup after a conversation was opened."""

    conversation_id: str
    unread_count: int
    messages_marked_read: int
