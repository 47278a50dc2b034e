"""
MedCare Backend: Camp Schemas
===============================

What:  Request bodies, responses, and query parameters for the camp endpoints.

Validation at the boundary:
    - fees must be a non-negative number; "abc" is rejected before the
      service runs (the global handler reports it as a 400)
    - name is required and non-empty on create
    - update bodies are partial: only provided fields are written
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class CampBase(BaseModel):
    name: str = Field(min_length=1, max_length=255, description="Camp name")
    image_url: Optional[str] = Field(default=None, max_length=1024)
    category: Optional[str] = Field(default=None, max_length=100)
    fees: float = Field(default=0.0, ge=0, description="Registration fee")
    location: Optional[str] = Field(default=None, max_length=255)
    healthcare_professional: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Doctor or team running the camp",
    )
    description: Optional[str] = Field(default=None)
    scheduled_at: Optional[datetime] = Field(default=None, description="Camp date and time (ISO 8601)")


class CampCreate(CampBase):
    """Body of POST /camps. Organizer identity comes from the session, not the body."""
    pass


class CampUpdate(BaseModel):
    """Body of PUT /camps/{id}. Every field is optional."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    image_url: Optional[str] = Field(default=None, max_length=1024)
    category: Optional[str] = Field(default=None, max_length=100)
    fees: Optional[float] = Field(default=None, ge=0)
    location: Optional[str] = Field(default=None, max_length=255)
    healthcare_professional: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None


class CampResponse(CampBase):
    """Full camp representation including the cached aggregates."""
    id: uuid.UUID
    organizer_email: str
    organizer_name: Optional[str] = None
    participant_count: int = Field(description="Number of registrations")
    average_rating: Optional[float] = Field(default=None, description="Mean of participant ratings")
    created_at: datetime

    model_config = {"from_attributes": True}


class CampListResponse(BaseModel):
    """
    Offset-paginated camp listing.

    has_more lets "load more" UIs stop without comparing page * limit to total.
    """
    camps: List[CampResponse]
    total_count: int = Field(description="Total number of camps matching filters")
    page: int
    limit: int
    has_more: bool


class CampListParams(BaseModel):
    """
    Validated query parameters for GET /camps.

    Parameters:
        page / limit: 1-based page number and page size (max 100)
        category:     exact category match
        search:       case-insensitive match on name, location, or professional
        date:         only camps scheduled on this day (YYYY-MM-DD)
        sort:         newest (default), most_registered, fees_asc, fees_desc, name
    """
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    category: Optional[str] = None
    search: Optional[str] = Field(default=None, max_length=100)
    date: Optional[str] = None
    sort: str = Field(default="newest")

    @field_validator("sort")
    @classmethod
    def validate_sort(cls, v: str) -> str:
        valid = {"newest", "most_registered", "fees_asc", "fees_desc", "name"}
        if v not in valid:
            raise ValueError(f"Invalid sort '{v}'. Must be one of: {sorted(valid)}")
        return v


class ReconcileResponse(BaseModel):
    """Result of recomputing cached aggregates from registrations."""
    camps_updated: int
