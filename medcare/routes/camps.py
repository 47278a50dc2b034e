"""
MedCare Backend: Camp Route Handlers
======================================

Route Inventory:
    GET    /camps                   paginated, filtered, sorted listing
    GET    /camps/popular           most registered camps
    GET    /camps/organizer/mine    camps of the signed-in organizer
    GET    /camps/{id}              one camp
    POST   /camps                   create (organizer)
    PUT    /camps/{id}              update own camp (organizer)
    DELETE /camps/{id}              delete own camp (organizer)
    POST   /camps/reconcile         recompute aggregates of every camp (admin)
    POST   /camps/{id}/reconcile    recompute aggregates of one camp (admin)
"""

import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.database import get_db_session
from medcare.dependencies import require_admin, require_organizer
from medcare.schemas.camp import (
    CampCreate,
    CampListParams,
    CampListResponse,
    CampResponse,
    CampUpdate,
    ReconcileResponse,
)
from medcare.schemas.common import ErrorResponse, MessageResponse
from medcare.services.auth_service import TokenClaims
from medcare.services.camp_service import camp_service
from medcare.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/camps", tags=["Camps"])


@router.get(
    "",
    response_model=CampListResponse,
    responses={400: {"model": ErrorResponse}},
    summary="List camps with filters and pagination",
)
async def list_camps(
    response: Response,
    params: Annotated[CampListParams, Query()],
    db: AsyncSession = Depends(get_db_session),
) -> CampListResponse:
    result = await camp_service.list_camps(db, params)
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get("/popular", response_model=List[CampResponse], summary="Most registered camps")
async def popular_camps(
    limit: int = Query(default=6, ge=1, le=50),
    db: AsyncSession = Depends(get_db_session),
) -> List[CampResponse]:
    return await camp_service.popular(db, limit=limit)


@router.get(
    "/organizer/mine",
    response_model=List[CampResponse],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Camps created by the signed-in organizer",
)
async def my_camps(
    claims: TokenClaims = Depends(require_organizer),
    db: AsyncSession = Depends(get_db_session),
) -> List[CampResponse]:
    return await camp_service.list_for_organizer(db, claims.email)


@router.post(
    "/reconcile",
    response_model=ReconcileResponse,
    summary="Recompute participant counts and ratings of all camps (admin)",
)
async def reconcile_all(
    _: TokenClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ReconcileResponse:
    return ReconcileResponse(camps_updated=await camp_service.reconcile_aggregates(db))


@router.get(
    "/{camp_id}",
    response_model=CampResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get one camp",
)
async def get_camp(camp_id: str, db: AsyncSession = Depends(get_db_session)) -> CampResponse:
    return await camp_service.get_camp(db, camp_id)


@router.post(
    "",
    status_code=201,
    response_model=CampResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Create a camp (organizer)",
)
async def create_camp(
    payload: CampCreate,
    claims: TokenClaims = Depends(require_organizer),
    db: AsyncSession = Depends(get_db_session),
) -> CampResponse:
    organizer = await user_service.get_user_by_email(db, claims.email)
    return await camp_service.create_camp(
        db,
        payload,
        organizer_email=claims.email,
        organizer_name=organizer.display_name if organizer else None,
    )


@router.put(
    "/{camp_id}",
    response_model=CampResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Update own camp (organizer)",
)
async def update_camp(
    camp_id: str,
    payload: CampUpdate,
    claims: TokenClaims = Depends(require_organizer),
    db: AsyncSession = Depends(get_db_session),
) -> CampResponse:
    return await camp_service.update_camp(db, camp_id, payload, claims.email)


@router.delete(
    "/{camp_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete own camp (organizer)",
)
async def delete_camp(
    camp_id: str,
    claims: TokenClaims = Depends(require_organizer),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await camp_service.delete_camp(db, camp_id, claims.email)
    return MessageResponse(message="Camp deleted")


@router.post(
    "/{camp_id}/reconcile",
    response_model=ReconcileResponse,
    summary="Recompute participant count and rating of one camp (admin)",
)
async def reconcile_camp(
    camp_id: str,
    _: TokenClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ReconcileResponse:
    return ReconcileResponse(camps_updated=await camp_service.reconcile_aggregates(db, camp_id))
