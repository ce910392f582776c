"""Request-scoped collaborators shared by the messaging routers."""

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.messaging.delivery import DeliveryScheduler
from app.messaging.types import Viewer
from app.services.errors import ViewerNotFoundError
from app.services.viewers import resolve_viewer


def get_current_viewer(
    x_viewer_id: str = Header(..., min_length=1),
    db: Session = Depends(get_db),
) -> Viewer:
    """Resolve the viewer supplied by the session collaborator."""

    try:
        return resolve_viewer(db, x_viewer_id)
    except ViewerNotFoundError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def get_scheduler(request: Request) -> DeliveryScheduler:
    """Scheduler owned by the running application lifespan."""

    return request.app.state.delivery_scheduler
