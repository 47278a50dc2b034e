"""
MedCare Backend: Payment SQLAlchemy Model
===========================================

What:  ORM model for the `payments` table.
Why:   Records what a participant paid; its status mirrors the registration
       that shares its payment_method_id.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from medcare.database import Base
from medcare.models.registration import RegistrationStatus


class Payment(Base):
    """A completed client-side charge, recorded after the gateway confirms it."""

    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    payer_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    camp_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    payment_method_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=RegistrationStatus.ACTIVE.value,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, payer_email='{self.payer_email}', status='{self.status}')>"
