"""Participant ORM model."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.messaging.types import ParticipantRole
from app.models.base import Base, CreatedAtMixin


class Participant(Base, CreatedAtMixin):
    """Clinician or patient identity as supplied by the identity collaborator."""

    __tablename__ = "participants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    role: Mapped[str] = mapped_column(String(16), index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar: Mapped[str] = mapped_column(String(8), nullable=False, default="")
    specialty: Mapped[str | None] = mapped_column(String(255), nullable=True)
    primary_condition: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_online: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def secondary_label(self) -> str | None:
        """Specialty for clinicians, primary condition for patients."""

        return self.specialty if self.role == ParticipantRole.CLINICIAN else self.primary_condition
