"""Conversation ORM model."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import InstrumentedAttribute, Mapped, mapped_column, relationship

from app.messaging.types import ParticipantRole
from app.models.base import Base, CreatedAtMixin
from app.models.participant import Participant


class Conversation(Base, CreatedAtMixin):
    """Thread between exactly one clinician and one patient, with rollups."""

    __tablename__ = "conversations"
    __table_args__ = (
        CheckConstraint("clinician_unread_count >= 0", name="ck_conversations_clinician_unread_nonneg"),
        CheckConstraint("patient_unread_count >= 0", name="ck_conversations_patient_unread_nonneg"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    clinician_id: Mapped[str] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    patient_id: Mapped[str] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    clinician_unread_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    patient_unread_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_message_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        index=True,
        nullable=True,
    )
    last_message_preview: Mapped[str | None] = mapped_column(String(255), nullable=True)

    clinician: Mapped[Participant] = relationship(foreign_keys=[clinician_id], lazy="joined")
    patient: Mapped[Participant] = relationship(foreign_keys=[patient_id], lazy="joined")

    @staticmethod
    def participant_column(role: ParticipantRole) -> InstrumentedAttribute[str]:
        """Column holding the participant id for ``role``."""

        if role is ParticipantRole.CLINICIAN:
            return Conversation.clinician_id
        return Conversation.patient_id

    def participant_id_for(self, role: ParticipantRole) -> str:
        return self.clinician_id if role is ParticipantRole.CLINICIAN else self.patient_id

    def participant_for(self, role: ParticipantRole) -> Participant:
        return self.clinician if role is ParticipantRole.CLINICIAN else self.patient

    def unread_count_for(self, role: ParticipantRole) -> int:
        if role is ParticipantRole.CLINICIAN:
            return self.clinician_unread_count
        return self.patient_unread_count

    def set_unread_count(self, role: ParticipantRole, value: int) -> None:
        if value < 0:
            raise ValueError("unread count cannot be negative")
        if role is ParticipantRole.CLINICIAN:
            self.clinician_unread_count = value
        else:
            self.patient_unread_count = value
