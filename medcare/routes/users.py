"""
MedCare Backend: User Route Handlers
======================================

Route Inventory:
    POST  /users                         save (upsert) the signed-in user's profile
    GET   /users/me/role                 role of the session user
    POST  /users/me/organizer-request    ask an admin for the organizer role
    GET   /users                         all users (admin)
    PATCH /users/{email}/role            change a user's role (admin)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.database import get_db_session
from medcare.dependencies import get_current_claims, require_admin
from medcare.schemas.common import ErrorResponse
from medcare.schemas.user import (
    RoleResponse,
    RoleUpdateRequest,
    SaveUserRequest,
    UserListResponse,
    UserResponse,
)
from medcare.services.auth_service import TokenClaims
from medcare.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=UserResponse,
    summary="Save the signed-in user's profile",
)
async def save_user(
    payload: SaveUserRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    # Called before the session cookie exists (right after provider sign-in)
    return await user_service.save_user(db, payload)


@router.get(
    "/me/role",
    response_model=RoleResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Role of the current user",
)
async def my_role(
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db_session),
) -> RoleResponse:
    return await user_service.get_role(db, claims.email)


@router.post(
    "/me/organizer-request",
    response_model=RoleResponse,
    summary="Request the organizer role",
)
async def request_organizer(
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db_session),
) -> RoleResponse:
    return await user_service.request_organizer(db, claims.email)


@router.get(
    "",
    response_model=UserListResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="List all users (admin)",
)
async def list_users(
    _: TokenClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    return await user_service.list_users(db)


@router.patch(
    "/{email}/role",
    response_model=RoleResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Change a user's role (admin)",
)
async def update_role(
    email: str,
    payload: RoleUpdateRequest,
    claims: TokenClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> RoleResponse:
    logger.info("Admin %s setting role of %s to %s", claims.email, email, payload.role.value)
    return await user_service.update_role(db, email, payload.role)
