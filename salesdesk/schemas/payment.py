"""Request/response schemas for payment methods and order payments."""

from datetime import datetime

from pydantic import BaseModel


class PaymentMethodPayload(BaseModel):
    payment_method_name: str | None = None
    description: str | None = None


class PaymentMethodOut(BaseModel):
    payment_id: int
    payment_method_name: str
    description: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class OrderPaymentRequest(BaseModel):
    payment_method: int | None = None
