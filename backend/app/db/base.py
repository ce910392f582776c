"""SQLAlchemy metadata registry import for Alembic."""

from app.models import Conversation, Message, Participant, ViewerState
from app.models.base import Base

__all__ = ["Base", "Participant", "Conversation", "Message", "ViewerState"]
