"""Message append, compose and retrieval services."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, tzinfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.messaging.delivery import INITIAL_STATUS, DeliveryScheduler
from app.messaging.time_labels import as_utc, message_time_label, resolve_timezone, utc_now
from app.messaging.types import (
    AttachmentKind,
    AttachmentMeta,
    DeliveryStatus,
    ParticipantRole,
    SenderSide,
    Viewer,
    counterpart_role,
    sender_side,
)
from app.models.conversation import Conversation
from app.models.message import Message
from app.schemas.message import AttachmentPayload, MessageRead
from app.services.delivery import schedule_delivery_receipts
from app.services.errors import MessageNotFoundError, MessageValidationError
from app.services.viewers import get_active_conversation_id, get_conversation_for_viewer

logger = logging.getLogger(__name__)


def list_messages(db: Session, conversation_id: str) -> list[Message]:
    """Return messages for a conversation ordered deterministically."""

    stmt = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.sent_at.asc(), Message.id.asc())
    )
    return list(db.scalars(stmt).all())


def last_message(db: Session, conversation_id: str) -> Message | None:
    """Message with the greatest ``(sent_at, id)``, or ``None`` when empty."""

    stmt = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.sent_at.desc(), Message.id.desc())
        .limit(1)
    )
    return db.scalar(stmt)


def build_preview(text: str | None, attachment: AttachmentMeta | None, *, limit: int) -> str:
    if text:
        collapsed = " ".join(text.split())
        if len(collapsed) > limit:
            return collapsed[: max(limit - 3, 0)].rstrip() + "..."
        return collapsed
    if attachment is not None:
        return f"Attachment: {attachment.display_name}"
    return ""


def append_message(
    db: Session,
    conversation: Conversation,
    *,
    sender_role: ParticipantRole,
    text: str | None,
    attachment: AttachmentMeta | None = None,
    status: DeliveryStatus = INITIAL_STATUS,
    sent_at: datetime | None = None,
    settings: Settings | None = None,
) -> Message:
    """Persist one trailing message and keep the conversation rollups consistent.

    ``sent_at`` is clamped to the current last message so the sequence never
    reorders, even under client clock skew. The recipient's unread count grows
    unless the recipient has this conversation open.
    """

    settings = settings or get_settings()
    body = (text or "").strip() or None
    if body is None and attachment is None:
        raise MessageValidationError("A message needs text or an attachment.")

    stamp = as_utc(sent_at or utc_now())
    previous = last_message(db, conversation.id)
    if previous is not None and as_utc(previous.sent_at) > stamp:
        stamp = as_utc(previous.sent_at)

    message = Message(
        conversation_id=conversation.id,
        sender_role=sender_role.value,
        text=body,
        attachment_kind=attachment.kind.value if attachment else None,
        attachment_name=attachment.display_name if attachment else None,
        attachment_size_label=attachment.size_label if attachment else None,
        sent_at=stamp,
        status=DeliveryStatus(status).value,
    )
    db.add(message)

    conversation.last_message_at = stamp
    conversation.last_message_preview = build_preview(body, attachment, limit=settings.message_preview_length)

    recipient_role = counterpart_role(sender_role)
    recipient_id = conversation.participant_id_for(recipient_role)
    if get_active_conversation_id(db, recipient_id) != conversation.id:
        conversation.set_unread_count(recipient_role, conversation.unread_count_for(recipient_role) + 1)

    db.commit()
    db.refresh(message)
    return message


def send_message(
    db: Session,
    viewer: Viewer,
    conversation_id: str,
    *,
    text: str,
    attachment: AttachmentMeta | None = None,
    scheduler: DeliveryScheduler | None = None,
    session_factory: Callable[[], Session] | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> Message | None:
    """Compose and submit a message as the viewer.

    Blank text is rejected silently (returns ``None``). Accepted messages start
    as SENT and, when a scheduler is supplied, get their simulated delivery
    and read acknowledgements queued without blocking the caller.
    """

    settings = settings or get_settings()
    conversation = get_conversation_for_viewer(db, viewer, conversation_id)

    trimmed = (text or "").strip()
    if not trimmed:
        logger.debug("messaging.send_rejected conversation_id=%s viewer_id=%s", conversation_id, viewer.id)
        return None

    message = append_message(
        db,
        conversation,
        sender_role=viewer.role,
        text=trimmed,
        attachment=attachment,
        sent_at=now,
        settings=settings,
    )
    logger.info(
        "messaging.send conversation_id=%s message_id=%d sender_role=%s",
        conversation_id,
        message.id,
        viewer.role.value,
    )

    if scheduler is not None and settings.simulate_delivery:
        schedule_delivery_receipts(
            message.id,
            scheduler=scheduler,
            session_factory=session_factory,
            settings=settings,
        )
    return message


def get_message_for_viewer(db: Session, viewer: Viewer, message_id: int) -> Message:
    message = db.get(Message, message_id)
    if message is None:
        raise MessageNotFoundError(f"Message {message_id} not found.")
    conversation = db.get(Conversation, message.conversation_id)
    if conversation is None or conversation.participant_id_for(viewer.role) != viewer.id:
        raise MessageNotFoundError(f"Message {message_id} not found.")
    return message


def attachment_of(message: Message) -> AttachmentPayload | None:
    if not message.attachment_kind:
        return None
    return AttachmentPayload(
        kind=AttachmentKind(message.attachment_kind),
        display_name=message.attachment_name or "",
        size_label=message.attachment_size_label or "",
    )


def to_message_read(
    message: Message,
    viewer: Viewer,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> MessageRead:
    """Serialize a message relative to ``viewer``.

    Receipts are only meaningful for the viewer's own messages; counterpart
    messages carry ``receipt=None``.
    """

    side = sender_side(message.sender_role, viewer.role)
    status = DeliveryStatus(message.status)
    sent_at = as_utc(message.sent_at)
    return MessageRead(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_role=ParticipantRole(message.sender_role),
        sender=side,
        text=message.text,
        attachment=attachment_of(message),
        sent_at=sent_at,
        status=status,
        receipt=status if side is SenderSide.SELF else None,
        time_label=message_time_label(
            sent_at,
            now or utc_now(),
            tz or resolve_timezone(get_settings().display_timezone),
        ),
    )
