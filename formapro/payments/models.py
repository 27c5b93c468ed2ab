# module formapro.payments.models
from typing import Optional
from pydantic import BaseModel, Field

from formapro.orders.models import PaymentMethod


class InitiatePaymentRequest(BaseModel):
    order_id: str = Field(min_length=1)
    amount: int = Field(gt=0)
    payment_method: PaymentMethod
    phone: Optional[str] = Field(default=None, max_length=40)


class WebhookPayload(BaseModel):
    """Corps POST envoyé par la passerelle: {reference, status, order_id}."""
    reference: str = Field(min_length=1)
    status: str = Field(min_length=1)
    order_id: str = Field(min_length=1)
