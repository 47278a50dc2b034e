"""
MedCare Backend: Registration Schemas
=======================================

What:  Request bodies and responses for joining, rating, and canceling.

Note on camp_id:
    JoinCampRequest.camp_id is a plain string on purpose. The service parses
    it so a malformed id produces the domain ValidationError ("Invalid camp
    id") rather than a generic schema error.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from medcare.models.registration import RegistrationStatus


class JoinCampRequest(BaseModel):
    """Body of POST /registrations. Accepts camp_id or campId."""
    camp_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("camp_id", "campId"),
        description="Identifier of the camp to join",
    )
    participant_name: Optional[str] = Field(default=None, max_length=255)
    payment_method_id: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Gateway payment-method reference, if the fee was paid",
    )


class JoinCampResponse(BaseModel):
    success: bool = True
    registration_id: uuid.UUID


class RatingRequest(BaseModel):
    """Body of PATCH /registrations/{id}/rating."""
    rating: int = Field(ge=1, le=5, description="Rating from 1 to 5")
    rating_text: Optional[str] = Field(default=None, max_length=2000)


class RatingResponse(BaseModel):
    success: bool = True
    camp_id: uuid.UUID
    average_rating: float


class StatusUpdateRequest(BaseModel):
    """Body of PATCH /registrations/{id}/status."""
    status: RegistrationStatus


class RegistrationResponse(BaseModel):
    id: uuid.UUID
    camp_id: uuid.UUID
    participant_email: str
    participant_name: Optional[str] = None
    payment_method_id: Optional[str] = None
    status: str
    rating: Optional[int] = None
    rating_text: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class RegistrationListResponse(BaseModel):
    registrations: List[RegistrationResponse]
    total_count: int
    page: int
    limit: int
    has_more: bool
