"""
MedCare Backend: Payment Service
==================================

What:  Payment intents (through the gateway) and payment records.
How:   The gateway is passed in by the route, so tests can hand in a fake.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.config import settings
from medcare.exceptions import NotFoundError, ValidationError
from medcare.models.payment import Payment
from medcare.models.registration import RegistrationStatus
from medcare.schemas.payment import (
    PaymentCreate,
    PaymentIntentResponse,
    PaymentListResponse,
    PaymentResponse,
)
from medcare.services.camp_service import parse_uuid
from medcare.services.payment_base import PaymentGateway

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    """12.345 → 1235 (cents), rounding half up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Business logic for payments."""

    async def create_intent(
        self,
        gateway: PaymentGateway,
        fees: float,
        currency: Optional[str] = None,
    ) -> PaymentIntentResponse:
        amount = to_minor_units(fees)
        if amount <= 0:
            raise ValidationError(message="Payment amount must be positive", field="fees")
        secret = await gateway.create_payment_intent(amount, currency or settings.payment_currency)
        return PaymentIntentResponse(client_secret=secret)

    async def record_payment(
        self,
        db: AsyncSession,
        payer_email: str,
        payload: PaymentCreate,
    ) -> PaymentResponse:
        payment = Payment(
            payer_email=payer_email,
            camp_id=payload.camp_id,
            amount=payload.amount,
            payment_method_id=payload.payment_method_id,
            status=RegistrationStatus.ACTIVE.value,
        )
        db.add(payment)
        await db.flush()
        logger.info("Recorded payment %s from %s", payment.id, payer_email)
        return PaymentResponse.model_validate(payment)

    async def list_payments(self, db: AsyncSession, payer_email: str) -> PaymentListResponse:
        condition = Payment.payer_email == payer_email
        result = await db.execute(
            select(Payment).where(condition).order_by(Payment.created_at.desc())
        )
        payments = list(result.scalars().all())
        total = await db.scalar(select(func.count(Payment.id)).where(condition)) or 0
        return PaymentListResponse(
            payments=[PaymentResponse.model_validate(p) for p in payments],
            total_count=total,
        )

    async def get_payment(self, db: AsyncSession, payment_id: str, payer_email: str) -> PaymentResponse:
        payment_uuid = parse_uuid(payment_id, "payment_id")
        result = await db.execute(
            select(Payment).where(Payment.id == payment_uuid, Payment.payer_email == payer_email)
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundError(resource="payment", resource_id=payment_id)
        return PaymentResponse.model_validate(payment)

    async def delete_payment(self, db: AsyncSession, payment_id: str, payer_email: str) -> None:
        payment_uuid = parse_uuid(payment_id, "payment_id")
        result = await db.execute(
            delete(Payment).where(Payment.id == payment_uuid, Payment.payer_email == payer_email)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="payment", resource_id=payment_id)


payment_service = PaymentService()
