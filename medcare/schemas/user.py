"""
MedCare Backend: User and Session Schemas
===========================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from medcare.models.user import UserRole


class TokenRequest(BaseModel):
    """Body of POST /auth/jwt, sent after the client signs in with the identity provider."""
    email: EmailStr


class SaveUserRequest(BaseModel):
    """Body of POST /users (upsert keyed by uid)."""
    uid: str = Field(min_length=1, max_length=128)
    email: EmailStr
    display_name: Optional[str] = Field(default=None, max_length=255)
    photo_url: Optional[str] = Field(default=None, max_length=1024)


class RoleUpdateRequest(BaseModel):
    role: UserRole


class RoleResponse(BaseModel):
    email: str
    role: Optional[str] = None
    status: Optional[str] = None


class UserResponse(BaseModel):
    id: uuid.UUID
    uid: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total_count: int
