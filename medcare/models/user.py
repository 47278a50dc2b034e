"""
MedCare Backend: User SQLAlchemy Model
========================================

What:  ORM model for the `users` table.
Why:   The Role Authorizer reads the role from here on every protected request.
How:   Email is the stable join key used by registrations and payments;
       uid is the identity provider's id used for upserts.

Role lifecycle:
    unset → participant   (implicit, on first successful join)
    participant → organizer | admin   (explicit admin update)
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from medcare.database import Base


class UserRole(str, enum.Enum):
    PARTICIPANT = "participant"
    ORGANIZER = "organizer"
    ADMIN = "admin"


# Status flag set when a participant asks to become an organizer
USER_STATUS_REQUESTED = "Requested"


class User(Base):
    """A registered platform user, mirrored from the identity provider."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    uid: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        nullable=False,
        comment="External identity provider id",
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # NULL means the role has not been assigned yet; older rows may still
    # carry the legacy "participants" placeholder
    role: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(email='{self.email}', role='{self.role}')>"
