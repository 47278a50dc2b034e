"""
MedCare Backend: Camp SQLAlchemy Model
========================================

What:  ORM model for the `camps` table.
Why:   Camps are the central resource: organizers create them, participants
       join and rate them.

Aggregate columns:
    participant_count and average_rating are cached values maintained by the
    join/rating workflow. Both can be recomputed from the registrations
    table (see CampService.reconcile_aggregates), which is the source of truth.

    Index on participant_count DESC:
        Backs the "popular camps" and "most registered" sort.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Float, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from medcare.database import Base


class Camp(Base):
    """A medical camp published by an organizer."""

    __tablename__ = "camps"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    fees: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    healthcare_professional: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ── Embedded organizer identity ───────────────────────────────────────
    organizer_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    organizer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Cached aggregates ─────────────────────────────────────────────────
    participant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("participant_count >= 0", name="ck_camps_participant_count_non_negative"),
        Index("idx_camps_participant_count", participant_count.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Camp(id={self.id}, name='{self.name}', "
            f"participant_count={self.participant_count})>"
        )
