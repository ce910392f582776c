"""Messaging value types independent of persistence."""

from dataclasses import dataclass
from enum import Enum


class ParticipantRole(str, Enum):
    """Role of a conversation participant."""

    CLINICIAN = "CLINICIAN"
    PATIENT = "PATIENT"


class DeliveryStatus(str, Enum):
    """Delivery lifecycle of a locally authored message."""

    SENT = "SENT"
    DELIVERED = "DELIVERED"
    READ = "READ"


class AttachmentKind(str, Enum):
    """Attachment metadata kind; bytes never flow through this service."""

    DOCUMENT = "DOCUMENT"
    IMAGE = "IMAGE"


class SenderSide(str, Enum):
    """Message author relative to the viewer."""

    SELF = "self"
    COUNTERPART = "counterpart"


def counterpart_role(role: ParticipantRole) -> ParticipantRole:
    """Return the other side of a clinician/patient pair."""

    if role is ParticipantRole.CLINICIAN:
        return ParticipantRole.PATIENT
    return ParticipantRole.CLINICIAN


def sender_side(sender_role: str, viewer_role: ParticipantRole) -> SenderSide:
    """Classify a message author as self or counterpart for ``viewer_role``."""

    if ParticipantRole(sender_role) is viewer_role:
        return SenderSide.SELF
    return SenderSide.COUNTERPART


@dataclass(slots=True, frozen=True)
class Viewer:
    """Signed-in participant resolved by the session collaborator."""

    id: str
    role: ParticipantRole
    display_name: str = ""


@dataclass(slots=True, frozen=True)
class AttachmentMeta:
    """Resolved attachment metadata."""

    kind: AttachmentKind
    display_name: str
    size_label: str
