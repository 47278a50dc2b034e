"""
MedCare Backend: Payment Schemas
==================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class PaymentIntentRequest(BaseModel):
    """Body of POST /payments/intent. Amount is in major units (e.g. dollars)."""
    fees: float = Field(gt=0, description="Amount to charge")


class PaymentIntentResponse(BaseModel):
    client_secret: str = Field(description="Secret the client uses to confirm the charge")


class PaymentCreate(BaseModel):
    """Body of POST /payments, sent after the client confirms the charge."""
    amount: float = Field(ge=0)
    payment_method_id: str = Field(min_length=1, max_length=255)
    camp_id: Optional[uuid.UUID] = None


class PaymentResponse(BaseModel):
    id: uuid.UUID
    payer_email: str
    camp_id: Optional[uuid.UUID] = None
    amount: float
    payment_method_id: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]
    total_count: int
