"""
MedCare Backend: Payment Route Handlers
=========================================

Route Inventory:
    POST   /payments/intent   create a gateway payment intent, return its client secret
    POST   /payments          record a confirmed payment (participant)
    GET    /payments          own payment history (participant)
    GET    /payments/{id}     one own payment
    DELETE /payments/{id}     delete one own payment record

Payment flow:
    client → POST /payments/intent → confirm card with the secret (client-side)
    → POST /payments → POST /registrations with the same payment_method_id
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.database import get_db_session
from medcare.dependencies import get_current_claims, get_payment_gateway, require_participant
from medcare.schemas.common import ErrorResponse, MessageResponse
from medcare.schemas.payment import (
    PaymentCreate,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentListResponse,
    PaymentResponse,
)
from medcare.services.auth_service import TokenClaims
from medcare.services.payment_base import PaymentGateway
from medcare.services.payment_service import payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/intent",
    response_model=PaymentIntentResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"description": "Gateway failed", "model": ErrorResponse},
        503: {"description": "Gateway circuit open", "model": ErrorResponse},
    },
    summary="Create a payment intent",
)
async def create_payment_intent(
    payload: PaymentIntentRequest,
    _: TokenClaims = Depends(get_current_claims),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentIntentResponse:
    return await payment_service.create_intent(gateway, payload.fees)


@router.post(
    "",
    status_code=201,
    response_model=PaymentResponse,
    summary="Record a confirmed payment",
)
async def record_payment(
    payload: PaymentCreate,
    claims: TokenClaims = Depends(require_participant),
    db: AsyncSession = Depends(get_db_session),
) -> PaymentResponse:
    return await payment_service.record_payment(db, claims.email, payload)


@router.get("", response_model=PaymentListResponse, summary="Own payment history")
async def list_payments(
    claims: TokenClaims = Depends(require_participant),
    db: AsyncSession = Depends(get_db_session),
) -> PaymentListResponse:
    return await payment_service.list_payments(db, claims.email)


@router.get(
    "/{payment_id}",
    response_model=PaymentResponse,
    responses={404: {"model": ErrorResponse}},
    summary="One own payment",
)
async def get_payment(
    payment_id: str,
    claims: TokenClaims = Depends(require_participant),
    db: AsyncSession = Depends(get_db_session),
) -> PaymentResponse:
    return await payment_service.get_payment(db, payment_id, claims.email)


@router.delete(
    "/{payment_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete one own payment record",
)
async def delete_payment(
    payment_id: str,
    claims: TokenClaims = Depends(require_participant),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await payment_service.delete_payment(db, payment_id, claims.email)
    return MessageResponse(message="Payment deleted")
