"""Viewer resolution and conversation access checks."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.messaging.types import ParticipantRole, Viewer
from app.models.conversation import Conversation
from app.models.participant import Participant
from app.models.viewer_state import ViewerState
from app.services.errors import ConversationNotFoundError, ViewerNotFoundError


def resolve_viewer(db: Session, viewer_id: str) -> Viewer:
    """Map a session-supplied id onto a known participant."""

    participant = db.get(Participant, viewer_id.strip())
    if participant is None:
        raise ViewerNotFoundError(f"Unknown viewer '{viewer_id}'.")
    return Viewer(
        id=participant.id,
        role=ParticipantRole(participant.role),
        display_name=participant.display_name,
    )


def get_conversation_for_viewer(db: Session, viewer: Viewer, conversation_id: str) -> Conversation:
    """Return the conversation if ``viewer`` participates in it."""

    conversation = db.scalar(
        select(Conversation).where(
            Conversation.id == conversation_id,
            Conversation.participant_column(viewer.role) == viewer.id,
        )
    )
    if conversation is None:
        raise ConversationNotFoundError(f"Conversation '{conversation_id}' not found.")
    return conversation


def has_viewer_state(db: Session, viewer_id: str) -> bool:
    """Whether the viewer has made (or been given) a selection before."""

    return db.get(ViewerState, viewer_id) is not None


def get_active_conversation_id(db: Session, viewer_id: str) -> str | None:
    return db.scalar(select(ViewerState.active_conversation_id).where(ViewerState.viewer_id == viewer_id))


def set_active_conversation(db: Session, viewer: Viewer, conversation_id: str | None) -> None:
    """Replace the viewer's single active conversation. Caller commits."""

    state = db.get(ViewerState, viewer.id)
    if state is None:
        db.add(ViewerState(viewer_id=viewer.id, active_conversation_id=conversation_id))
    else:
        state.active_conversation_id = conversation_id
    db.flush()
