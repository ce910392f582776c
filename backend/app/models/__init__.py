"""ORM models package exports."""

from app.models.conversation import Conversation
from app.models.message import Message
from app.models.participant import Participant
from app.models.viewer_state import ViewerState

__all__ = [
    "Conversation",
    "Message",
    "Participant",
    "ViewerState",
]
