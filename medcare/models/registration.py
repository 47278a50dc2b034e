"""
MedCare Backend: Registration SQLAlchemy Model
================================================

What:  ORM model for the `registrations` table: one participant's join of one camp.
Why:   Registrations carry the participant's rating, from which the camp's
       average rating is derived.

Linking:
    camp_id references camps.id. payment_method_id is the only link to the
    payments table; there is no foreign key between the two.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from medcare.database import Base


class RegistrationStatus(str, enum.Enum):
    ACTIVE = "Active"
    REQUESTED = "Requested"
    CANCELED = "Canceled"


class Registration(Base):
    """A participant's registration to a camp (the join record)."""

    __tablename__ = "registrations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    camp_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("camps.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    participant_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    participant_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    payment_method_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=RegistrationStatus.ACTIVE.value,
    )

    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rating_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_registrations_rating_range",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Registration(id={self.id}, camp_id={self.camp_id}, "
            f"participant_email='{self.participant_email}', status='{self.status}')>"
        )
