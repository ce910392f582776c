"""Read-receipt controller."""

from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.messaging.types import DeliveryStatus, Viewer, counterpart_role
from app.models.message import Message
from app.schemas.conversation import ReadReceiptResult
from app.services.viewers import get_conversation_for_viewer

logger = logging.getLogger(__name__)


def on_conversation_opened(
    db: Session,
    viewer: Viewer,
    conversation_id: str,
    *,
    settings: Settings | None = None,
) -> ReadReceiptResult:
    """Zero the viewer's unread count and acknowledge delivered counterpart messages.

    Idempotent. Counterpart messages still in SENT are left to their own
    acknowledgement timers so no message reaches READ without DELIVERED.
    """

    settings = settings or get_settings()
    conversation = get_conversation_for_viewer(db, viewer, conversation_id)
    previous_unread = conversation.unread_count_for(viewer.role)
    conversation.set_unread_count(viewer.role, 0)

    marked = 0
    if settings.mark_read_on_open:
        result = db.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_role == counterpart_role(viewer.role).value,
                Message.status == DeliveryStatus.DELIVERED.value,
            )
            .values(status=DeliveryStatus.READ.value)
            .execution_options(synchronize_session=False)
        )
        marked = int(result.rowcount or 0)
    db.commit()

    if previous_unread or marked:
        logger.info(
            "messaging.read_receipt conversation_id=%s viewer_id=%s cleared_unread=%d marked_read=%d",
            conversation_id,
            viewer.id,
            previous_unread,
            marked,
        )
    return ReadReceiptResult(conversation_id=conversation_id, unread_count=0, messages_marked_read=marked)
