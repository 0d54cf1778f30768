"""Request/response schemas for order deliveries."""

from datetime import datetime

from pydantic import BaseModel, Field


class ShippingCreateRequest(BaseModel):
    order_id: str | None = None
    name_customer: str | None = None
    phone_customer: str | None = None
    shipping_address: str | None = None
    carrier: str | None = None
    tracking_number: str | None = None
    shipping_cost: float = Field(default=0, allow_inf_nan=False)
    cod_shipping: float = Field(default=0, allow_inf_nan=False)
    weight: float | None = Field(default=None, allow_inf_nan=False)
    unit_weight: str | None = None
    delivery_date: datetime | None = None


class ShippingUpdate(BaseModel):
    """Partial update; only the fields present in the body are written."""

    name_customer: str | None = None
    phone_customer: str | None = None
    shipping_address: str | None = None
    carrier: str | None = None
    tracking_number: str | None = None
    shipping_cost: float | None = Field(default=None, allow_inf_nan=False)
    cod_shipping: float | None = Field(default=None, allow_inf_nan=False)
    weight: float | None = Field(default=None, allow_inf_nan=False)
    unit_weight: str | None = None
    status: str | None = None
    delivery_date: datetime | None = None
    actual_delivery_date: datetime | None = None


class ShippingOut(BaseModel):
    shipping_id: str
    order_id: str
    name_customer: str
    phone_customer: str
    shipping_address: str
    carrier: str | None = None
    tracking_number: str | None = None
    shipping_cost: float
    cod_shipping: float
    weight: float | None = None
    unit_weight: str | None = None
    status: str
    delivery_date: datetime | None = None
    actual_delivery_date: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ShippingsListResponse(BaseModel):
    data: list[ShippingOut]
    count: int
