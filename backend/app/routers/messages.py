"""Compose and message lookup routes."""

from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from app.db.dependencies import get_db, get_session_factory
from app.messaging.delivery import DeliveryScheduler
from app.messaging.types import Viewer
from app.routers.dependencies import get_current_viewer, get_scheduler
from app.schemas.common import ApiResponse
from app.schemas.message import MessageRead, MessageSendRequest, MessageSendResult
from app.services.errors import ConversationNotFoundError, MessageNotFoundError
from app.services.messages import get_message_for_viewer, send_message, to_message_read

router = APIRouter()


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ApiResponse[MessageSendResult],
    status_code=201,
)
def post_message(
    payload: MessageSendRequest,
    conversation_id: str = Path(..., min_length=1),
    viewer: Viewer = Depends(get_current_viewer),
    scheduler: DeliveryScheduler = Depends(get_scheduler),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    db: Session = Depends(get_db),
) -> ApiResponse[MessageSendResult]:
    """Send a message as the viewer. Blank text is accepted and ignored."""

    try:
        message = send_message(
            db,
            viewer,
            conversation_id,
            text=payload.text,
            attachment=payload.attachment.to_meta() if payload.attachment else None,
            scheduler=scheduler,
            session_factory=session_factory,
        )
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    if message is None:
        return ApiResponse(data=MessageSendResult(accepted=False))
    return ApiResponse(data=MessageSendResult(accepted=True, message=to_message_read(message, viewer)))


@router.get("/messages/{message_id}", response_model=ApiResponse[MessageRead])
def get_message(
    message_id: int = Path(..., ge=1),
    viewer: Viewer = Depends(get_current_viewer),
    db: Session = Depends(get_db),
) -> ApiResponse[MessageRead]:
    """Fetch one message, e.g. to poll its delivery status."""

    try:
        message = get_message_for_viewer(db, viewer, message_id)
    except MessageNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ApiResponse(data=to_message_read(message, viewer))
