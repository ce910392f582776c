"""Message request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.messaging.types import AttachmentKind, AttachmentMeta, DeliveryStatus, ParticipantRole, SenderSide


class AttachmentPayload(BaseModel):
    """Attachment metadata resolved by the storage collaborator."""

    model_config = ConfigDict(from_attributes=True)

    kind: AttachmentKind
    display_name: str = Field(min_length=1, max_length=255)
    size_label: str = Field(min_length=1, max_length=32)

    def to_meta(self) -> AttachmentMeta:
        return AttachmentMeta(kind=self.kind, display_name=self.display_name, size_label=self.size_label)


class MessageSendRequest(BaseModel):
    """Compose payload. Blank text is accepted here and rejected silently by the service."""

    text: str = Field(default="", max_length=4000)
    attachment: AttachmentPayload | None = None


class MessageRead(BaseModel):
    """Serialized message relative to the viewer."""

    id: int
    conversation_id: str
    sender_role: ParticipantRole
    sender: SenderSide
    text: str | None
    attachment: AttachmentPayload | None = None
    sent_at: datetime
    status: DeliveryStatus
    receipt: DeliveryStatus | None = None
    time_label: str


class MessageSendResult(BaseModel):
    """Outcome of a compose submission."""

    accepted: bool
    message: MessageRead | None = None
