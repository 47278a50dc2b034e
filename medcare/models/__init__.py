"""
MedCare Backend: ORM Models Package
=====================================

What:  SQLAlchemy models for every table the service owns.
Why:   Importing this package registers all tables on Base.metadata, which
       Alembic autogeneration and the test schema setup both rely on.
"""

from medcare.models.user import User, UserRole, USER_STATUS_REQUESTED
from medcare.models.camp import Camp
from medcare.models.registration import Registration, RegistrationStatus
from medcare.models.payment import Payment

__all__ = [
    "User",
    "UserRole",
    "USER_STATUS_REQUESTED",
    "Camp",
    "Registration",
    "RegistrationStatus",
    "Payment",
]
