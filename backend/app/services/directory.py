"""Conversation directory: listing, search and selection."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, aliased

from app.config import Settings, get_settings
from app.messaging.time_labels import as_utc, message_time_label, relative_time_label, resolve_timezone, utc_now
from app.messaging.types import ParticipantRole, Viewer, counterpart_role
from app.models.conversation import Conversation
from app.models.participant import Participant
from app.schemas.conversation import (
    ConversationListItem,
    ConversationsListResponse,
    CounterpartRead,
    ThreadView,
)
from app.services.read_receipts import on_conversation_opened
from app.services.threads import build_thread_view, empty_thread_view
from app.services.viewers import (
    get_active_conversation_id,
    get_conversation_for_viewer,
    has_viewer_state,
    set_active_conversation,
)

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _directory_rows(db: Session, viewer: Viewer, query: str | None) -> list[tuple[Conversation, Participant]]:
    other_role = counterpart_role(viewer.role)
    counterpart = aliased(Participant)
    secondary = counterpart.specialty if other_role is ParticipantRole.CLINICIAN else counterpart.primary_condition

    stmt = (
        select(Conversation, counterpart)
        .join(counterpart, counterpart.id == Conversation.participant_column(other_role))
        .where(Conversation.participant_column(viewer.role) == viewer.id)
    )
    filter_term = (query or "").strip()
    if filter_term:
        pattern = f"%{_escape_like(filter_term)}%"
        stmt = stmt.where(
            or_(
                counterpart.display_name.ilike(pattern, escape="\\"),
                secondary.ilike(pattern, escape="\\"),
            )
        )
    # Conversations without messages sort last.
    stmt = stmt.order_by(
        Conversation.last_message_at.is_(None),
        Conversation.last_message_at.desc(),
        Conversation.id.asc(),
    )
    return [(row[0], row[1]) for row in db.execute(stmt).unique().all()]


def _build_directory(
    db: Session,
    viewer: Viewer,
    query: str | None,
    now: datetime | None,
) -> ConversationsListResponse:
    now = now or utc_now()
    tz = resolve_timezone(get_settings().display_timezone)
    active_id = get_active_conversation_id(db, viewer.id)

    items: list[ConversationListItem] = []
    for conversation, counterpart in _directory_rows(db, viewer, query):
        last_at = as_utc(conversation.last_message_at) if conversation.last_message_at else None
        items.append(
            ConversationListItem(
                conversation_id=conversation.id,
                counterpart=CounterpartRead.model_validate(counterpart),
                unread_count=conversation.unread_count_for(viewer.role),
                last_message_preview=conversation.last_message_preview,
                last_message_at=last_at,
                last_message_label=message_time_label(last_at, now, tz) if last_at else None,
                last_activity_label=relative_time_label(last_at, now) if last_at else None,
                is_active=conversation.id == active_id,
            )
        )
    return ConversationsListResponse(
        items=items,
        total=len(items),
        query=(query or "").strip() or None,
        active_conversation_id=active_id,
    )


def list_conversations(db: Session, viewer: Viewer, *, now: datetime | None = None) -> ConversationsListResponse:
    """Return the viewer's conversations ordered by latest activity."""

    return _build_directory(db, viewer, None, now)


def search_conversations(
    db: Session,
    viewer: Viewer,
    query: str | None,
    *,
    now: datetime | None = None,
) -> ConversationsListResponse:
    """Filter the directory by counterpart name or secondary label, case-insensitively.

    A blank query returns the full directory in the same order.
    """

    return _build_directory(db, viewer, query, now)


def select_conversation(
    db: Session,
    viewer: Viewer,
    conversation_id: str,
    *,
    now: datetime | None = None,
) -> ThreadView:
    """Make ``conversation_id`` the viewer's only active conversation and open it."""

    conversation = get_conversation_for_viewer(db, viewer, conversation_id)
    unread_before_open = conversation.unread_count_for(viewer.role)
    set_active_conversation(db, viewer, conversation.id)
    on_conversation_opened(db, viewer, conversation.id)
    logger.info("messaging.select conversation_id=%s viewer_id=%s", conversation.id, viewer.id)
    return build_thread_view(
        db,
        viewer,
        conversation,
        unread_count=unread_before_open,
        is_active=True,
        now=now,
    )


def select_default_conversation(
    db: Session,
    viewer: Viewer,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> ThreadView | None:
    """Open the most recent conversation on a viewer's first load.

    Returns ``None`` when disabled, when the viewer already has a selection
    on record, or when the directory is empty.
    """

    settings = settings or get_settings()
    if not settings.default_select_on_load or has_viewer_state(db, viewer.id):
        return None
    rows = _directory_rows(db, viewer, None)
    if not rows:
        return None
    conversation = rows[0][0]
    logger.info("messaging.default_select conversation_id=%s viewer_id=%s", conversation.id, viewer.id)
    return select_conversation(db, viewer, conversation.id, now=now)


def get_active_thread(
    db: Session,
    viewer: Viewer,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> ThreadView:
    """Render the active thread, pre-selecting a default on first load."""

    default_view = select_default_conversation(db, viewer, now=now, settings=settings)
    if default_view is not None:
        return default_view
    active_id = get_active_conversation_id(db, viewer.id)
    if active_id is None:
        return empty_thread_view(settings)
    conversation = get_conversation_for_viewer(db, viewer, active_id)
    return build_thread_view(db, viewer, conversation, is_active=True, now=now, settings=settings)
