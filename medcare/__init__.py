"""
MedCare Backend: Application Package
======================================

Medical camp management API: camps, participant registrations, ratings,
and Stripe payments.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, role gates
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Workflows, validation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Services receive the session as an argument and never open their own,
    so every workflow runs inside the caller's transaction.
"""

__version__ = "1.0.0"
