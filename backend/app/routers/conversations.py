"""Conversation directory and thread routes."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.messaging.types import Viewer
from app.routers.dependencies import get_current_viewer
from app.schemas.common import ApiResponse
from app.schemas.conversation import ConversationsListResponse, ThreadView
from app.services.directory import (
    get_active_thread,
    list_conversations,
    search_conversations,
    select_conversation,
    select_default_conversation,
)
from app.services.errors import ConversationNotFoundError
from app.services.threads import get_thread

router = APIRouter()


@router.get("/conversations", response_model=ApiResponse[ConversationsListResponse])
def get_conversations(
    q: str | None = Query(default=None, max_length=200),
    viewer: Viewer = Depends(get_current_viewer),
    db: Session = Depends(get_db),
) -> ApiResponse[ConversationsListResponse]:
    """List the viewer's conversations, most recent activity first.

    The unfiltered listing is the directory load, so a first-time viewer gets
    the most recent conversation opened.
    """

    if q is not None and q.strip():
        return ApiResponse(data=search_conversations(db, viewer, q))
    select_default_conversation(db, viewer)
    return ApiResponse(data=list_conversations(db, viewer))


@router.post("/conversations/{conversation_id}/select", response_model=ApiResponse[ThreadView])
def post_select_conversation(
    conversation_id: str = Path(..., min_length=1),
    viewer: Viewer = Depends(get_current_viewer),
    db: Session = Depends(get_db),
) -> ApiResponse[ThreadView]:
    """Open a conversation: it becomes active and its unread count is cleared."""

    try:
        return ApiResponse(data=select_conversation(db, viewer, conversation_id))
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/conversations/{conversation_id}/thread", response_model=ApiResponse[ThreadView])
def get_conversation_thread(
    conversation_id: str = Path(..., min_length=1),
    viewer: Viewer = Depends(get_current_viewer),
    db: Session = Depends(get_db),
) -> ApiResponse[ThreadView]:
    """Render a thread without changing the active conversation."""

    try:
        return ApiResponse(data=get_thread(db, viewer, conversation_id))
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/thread/active", response_model=ApiResponse[ThreadView])
def get_active_conversation_thread(
    viewer: Viewer = Depends(get_current_viewer),
    db: Session = Depends(get_db),
) -> ApiResponse[ThreadView]:
    """Render the active thread, or the empty placeholder when none is selected."""

    return ApiResponse(data=get_active_thread(db, viewer))
