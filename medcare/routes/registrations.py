"""
MedCare Backend: Registration Route Handlers
==============================================

Route Inventory:
    POST  /registrations                              join a camp (any signed-in user)
    PATCH /registrations/{id}/rating                  rate own registration (participant)
    POST  /registrations/cancel/{payment_method_id}   cancel registration + payment
    PATCH /registrations/{id}/status                  set status on own camp (organizer)
    GET   /registrations/mine                         own registrations (participant)
    GET   /registrations/organizer                    registrations to own camps (organizer)

Why join is not participant-only:
    A first-time user has no role yet; the join itself promotes them to
    participant.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.database import get_db_session
from medcare.dependencies import get_current_claims, require_organizer, require_participant
from medcare.models.user import UserRole
from medcare.schemas.common import ErrorResponse, MessageResponse
from medcare.schemas.registration import (
    JoinCampRequest,
    JoinCampResponse,
    RatingRequest,
    RatingResponse,
    RegistrationListResponse,
    RegistrationResponse,
    StatusUpdateRequest,
)
from medcare.services.auth_service import TokenClaims
from medcare.services.registration_service import registration_service
from medcare.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/registrations", tags=["Registrations"])


@router.post(
    "",
    status_code=201,
    response_model=JoinCampResponse,
    responses={
        400: {"description": "Malformed camp id", "model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"description": "Camp not found", "model": ErrorResponse},
        500: {"description": "Counter update failed", "model": ErrorResponse},
    },
    summary="Join a camp",
)
async def join_camp(
    payload: JoinCampRequest,
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db_session),
) -> JoinCampResponse:
    return await registration_service.join_camp(
        db,
        participant_email=claims.email,
        camp_id=payload.camp_id,
        participant_name=payload.participant_name,
        payment_method_id=payload.payment_method_id,
    )


@router.patch(
    "/{registration_id}/rating",
    response_model=RatingResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Rate a joined camp (participant)",
)
async def rate_registration(
    registration_id: str,
    payload: RatingRequest,
    claims: TokenClaims = Depends(require_participant),
    db: AsyncSession = Depends(get_db_session),
) -> RatingResponse:
    return await registration_service.rate_registration(
        db,
        participant_email=claims.email,
        registration_id=registration_id,
        rating=payload.rating,
        rating_text=payload.rating_text,
    )


@router.post(
    "/cancel/{payment_method_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Cancel a registration and its payment",
)
async def cancel_registration(
    payment_method_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    user = await user_service.get_user_by_email(db, claims.email)
    role = user.role if user is not None else None
    if role == UserRole.ADMIN.value:
        scope = {}
    elif role == UserRole.ORGANIZER.value:
        scope = {"organizer_email": claims.email}
    else:
        scope = {"participant_email": claims.email}
    await registration_service.cancel_by_payment_method(db, payment_method_id, **scope)
    return MessageResponse(message="Registration canceled")


@router.patch(
    "/{registration_id}/status",
    response_model=RegistrationResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Set a registration's status (organizer)",
)
async def update_status(
    registration_id: str,
    payload: StatusUpdateRequest,
    claims: TokenClaims = Depends(require_organizer),
    db: AsyncSession = Depends(get_db_session),
) -> RegistrationResponse:
    return await registration_service.update_status(
        db, registration_id, payload.status, organizer_email=claims.email
    )


@router.get(
    "/mine",
    response_model=RegistrationListResponse,
    summary="Registrations of the signed-in participant",
)
async def my_registrations(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    claims: TokenClaims = Depends(require_participant),
    db: AsyncSession = Depends(get_db_session),
) -> RegistrationListResponse:
    return await registration_service.list_for_participant(db, claims.email, page, limit)


@router.get(
    "/organizer",
    response_model=RegistrationListResponse,
    summary="Registrations to the signed-in organizer's camps",
)
async def organizer_registrations(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    claims: TokenClaims = Depends(require_organizer),
    db: AsyncSession = Depends(get_db_session),
) -> RegistrationListResponse:
    return await registration_service.list_for_organizer(db, claims.email, page, limit)
