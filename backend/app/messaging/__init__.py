"""Persistence-free messaging domain: roles, delivery lifecycle, thread grouping."""

from app.messaging.delivery import (
    DeliveryScheduler,
    ThreadingDeliveryScheduler,
    can_transition,
    next_status,
)
from app.messaging.grouping import ThreadEntry, divider_positions, group_with_dividers
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

__all__ = [
    "AttachmentKind",
    "AttachmentMeta",
    "DeliveryScheduler",
    "DeliveryStatus",
    "ParticipantRole",
    "SenderSide",
    "ThreadEntry",
    "ThreadingDeliveryScheduler",
    "Viewer",
    "can_transition",
    "counterpart_role",
    "divider_positions",
    "group_with_dividers",
    "next_status",
    "sender_side",
]
