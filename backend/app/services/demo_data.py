"""Deterministic demo participants and conversations for local runs and tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.messaging.time_labels import as_utc, utc_now
from app.messaging.types import AttachmentKind, AttachmentMeta, DeliveryStatus, ParticipantRole
from app.models.conversation import Conversation
from app.models.message import Message
from app.models.participant import Participant
from app.models.viewer_state import ViewerState
from app.services.messages import append_message

CLINICIAN = ParticipantRole.CLINICIAN
PATIENT = ParticipantRole.PATIENT


@dataclass(slots=True)
class DemoMessage:
    sender_role: ParticipantRole
    text: str | None
    age: timedelta
    status: DeliveryStatus = DeliveryStatus.READ
    attachment: AttachmentMeta | None = None


@dataclass(slots=True)
class DemoConversation:
    id: str
    clinician_id: str
    patient_id: str
    clinician_unread: int = 0
    patient_unread: int = 0
    messages: list[DemoMessage] = field(default_factory=list)


DEMO_PARTICIPANTS: list[dict[str, object]] = [
    {
        "id": "DOC-102",
        "role": CLINICIAN.value,
        "display_name": "Dr. Sarah Jenkins",
        "avatar": "SJ",
        "specialty": "Nephrology Dept.",
        "is_online": True,
    },
    {
        "id": "DOC-105",
        "role": CLINICIAN.value,
        "display_name": "Dr. Marcus Vance",
        "avatar": "MV",
        "specialty": "General Practice",
        "is_online": False,
    },
    {
        "id": "PAT-8041",
        "role": PATIENT.value,
        "display_name": "Michael Chen",
        "avatar": "M",
        "primary_condition": "CKD Stage 3a",
        "is_online": True,
    },
    {
        "id": "PAT-8042",
        "role": PATIENT.value,
        "display_name": "Emily Rodriguez",
        "avatar": "E",
        "primary_condition": "Hypertension",
        "is_online": False,
    },
    {
        "id": "PAT-8044",
        "role": PATIENT.value,
        "display_name": "Robert Taylor",
        "avatar": "R",
        "primary_condition": "CKD Stage 4",
        "is_online": True,
    },
]


def build_demo_conversations() -> list[DemoConversation]:
    """Conversations keyed by age relative to the seeding time."""

    return [
        DemoConversation(
            id="CONV-8041",
            clinician_id="DOC-102",
            patient_id="PAT-8041",
            clinician_unread=2,
            messages=[
                DemoMessage(
                    PATIENT,
                    "Hello Dr. Jenkins, I wanted to follow up on the new dietary restrictions you mentioned.",
                    timedelta(hours=1),
                ),
                DemoMessage(
                    CLINICIAN,
                    "Sure, Michael. What specific concerns did you have regarding the sodium limits?",
                    timedelta(seconds=3500),
                ),
                DemoMessage(
                    PATIENT,
                    "I've been finding it difficult to cook without my usual seasonings. "
                    "Are there salt substitutes I can use safely?",
                    timedelta(minutes=5),
                    DeliveryStatus.DELIVERED,
                ),
                DemoMessage(
                    PATIENT,
                    "Also, I've attached my latest home blood pressure log for this week as requested.",
                    timedelta(minutes=4),
                    DeliveryStatus.DELIVERED,
                    AttachmentMeta(AttachmentKind.DOCUMENT, "BP_Log_March_Week1.pdf", "1.2 MB"),
                ),
            ],
        ),
        DemoConversation(
            id="CONV-8042",
            clinician_id="DOC-102",
            patient_id="PAT-8042",
            messages=[
                DemoMessage(
                    CLINICIAN,
                    "Good morning Emily, your lab results came back. The risk model showed no immediate risks.",
                    timedelta(days=2),
                ),
                DemoMessage(
                    PATIENT,
                    "That is wonderful news! Thank you so much for the update, Dr. Jenkins.",
                    timedelta(seconds=86_000 * 2),
                ),
            ],
        ),
        DemoConversation(
            id="CONV-8044",
            clinician_id="DOC-102",
            patient_id="PAT-8044",
            messages=[
                DemoMessage(
                    CLINICIAN,
                    "Robert, please remember to fast for 12 hours before your blood work tomorrow.",
                    timedelta(seconds=5_000),
                ),
                DemoMessage(PATIENT, "Understood. I'll be at the clinic at 8 AM sharp.", timedelta(seconds=4_000)),
            ],
        ),
        DemoConversation(
            id="CONV-2051",
            clinician_id="DOC-105",
            patient_id="PAT-8041",
            patient_unread=1,
            messages=[
                DemoMessage(
                    CLINICIAN,
                    "Hello Michael, just validating that your annual physical examination is still confirmed.",
                    timedelta(hours=50),
                ),
                DemoMessage(PATIENT, "Yes, I will be there at the main campus.", timedelta(hours=49)),
                DemoMessage(
                    PATIENT,
                    None,
                    timedelta(hours=48, minutes=30),
                    attachment=AttachmentMeta(AttachmentKind.IMAGE, "insurance_card.jpg", "640 KB"),
                ),
                DemoMessage(
                    CLINICIAN,
                    "Your annual checkup is confirmed for next week.",
                    timedelta(hours=48),
                    DeliveryStatus.DELIVERED,
                ),
            ],
        ),
    ]


def reset_demo_data(db: Session) -> None:
    """Remove all messaging records."""

    db.execute(delete(ViewerState))
    db.execute(delete(Message))
    db.execute(delete(Conversation))
    db.execute(delete(Participant))
    db.commit()


def seed_demo_data(db: Session, *, now: datetime | None = None, reset: bool = True) -> dict[str, int]:
    """Insert demo participants and conversations with preset unread counts."""

    anchor = as_utc(now or utc_now())
    if reset:
        reset_demo_data(db)

    for payload in DEMO_PARTICIPANTS:
        db.add(Participant(**payload))
    db.commit()

    message_count = 0
    demo_conversations = build_demo_conversations()
    for demo in demo_conversations:
        conversation = Conversation(id=demo.id, clinician_id=demo.clinician_id, patient_id=demo.patient_id)
        db.add(conversation)
        db.commit()
        for demo_message in sorted(demo.messages, key=lambda item: item.age, reverse=True):
            append_message(
                db,
                conversation,
                sender_role=demo_message.sender_role,
                text=demo_message.text,
                attachment=demo_message.attachment,
                status=demo_message.status,
                sent_at=anchor - demo_message.age,
            )
            message_count += 1
        conversation.set_unread_count(CLINICIAN, demo.clinician_unread)
        conversation.set_unread_count(PATIENT, demo.patient_unread)
        db.commit()

    return {
        "participants": len(DEMO_PARTICIPANTS),
        "conversations": len(demo_conversations),
        "messages": message_count,
    }
