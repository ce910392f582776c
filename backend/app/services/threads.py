"""Thread rendering plans for the active conversation."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.messaging.grouping import group_with_dividers
from app.messaging.time_labels import resolve_timezone, utc_now
from app.messaging.types import SenderSide, Viewer, counterpart_role
from app.models.conversation import Conversation
from app.schemas.conversation import CounterpartRead, ThreadEntryRead, ThreadView
from app.services.messages import list_messages, to_message_read
from app.services.viewers import get_active_conversation_id, get_conversation_for_viewer


def build_thread_view(
    db: Session,
    viewer: Viewer,
    conversation: Conversation,
    *,
    unread_count: int | None = None,
    is_active: bool | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> ThreadView:
    """Render ``conversation`` for ``viewer`` with dividers and the unread marker.

    ``unread_count`` overrides the stored rollup so callers can place the
    unread marker from the count observed before a read receipt cleared it.
    """

    settings = settings or get_settings()
    now = now or utc_now()
    tz = resolve_timezone(settings.display_timezone)
    pending = conversation.unread_count_for(viewer.role) if unread_count is None else unread_count
    if is_active is None:
        is_active = get_active_conversation_id(db, viewer.id) == conversation.id

    messages = [to_message_read(message, viewer, now=now, tz=tz) for message in list_messages(db, conversation.id)]
    plan = group_with_dividers(
        messages,
        gap=timedelta(minutes=settings.divider_gap_minutes),
        tz=tz,
        unread_count=pending,
        is_counterpart=lambda message: message.sender is SenderSide.COUNTERPART,
    )
    return ThreadView(
        conversation_id=conversation.id,
        counterpart=CounterpartRead.model_validate(conversation.participant_for(counterpart_role(viewer.role))),
        unread_count=conversation.unread_count_for(viewer.role),
        is_active=is_active,
        security_label=settings.security_label,
        entries=[
            ThreadEntryRead(
                divider_label=entry.divider_label,
                unread_boundary=entry.unread_boundary,
                message=entry.item,
            )
            for entry in plan
        ],
        scroll_anchor_message_id=messages[-1].id if messages else None,
    )


def empty_thread_view(settings: Settings | None = None) -> ThreadView:
    """Placeholder rendered when no conversation is selected."""

    settings = settings or get_settings()
    return ThreadView(security_label=settings.security_label)


def get_thread(
    db: Session,
    viewer: Viewer,
    conversation_id: str,
    *,
    now: datetime | None = None,
) -> ThreadView:
    """Render a conversation without changing which one is active."""

    conversation = get_conversation_for_viewer(db, viewer, conversation_id)
    return build_thread_view(db, viewer, conversation, now=now)
