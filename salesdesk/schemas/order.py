"""Request/response schemas for orders."""

from datetime import datetime

from pydantic import BaseModel, Field


class OrderItemPayload(BaseModel):
    product_id: int | None = None
    name_product: str | None = None
    quantity: int | None = None
    unit_price: float | None = Field(default=None, allow_inf_nan=False)


class OrderCreateRequest(BaseModel):
    customer_id: str | None = None
    items: list[OrderItemPayload] | None = None
    status: str | None = None
    is_shipping: bool = False
    payment_method: int | None = None


class OrderStatusUpdate(BaseModel):
    status: str | None = None


class OrderDetailOut(BaseModel):
    order_detail_id: int
    product_id: int | None = None
    name_product: str
    quantity: int
    unit_price: float
    subtotal: float

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    order_id: str
    customer_id: str | None = None
    order_date: datetime | None = None
    price: float
    status: str
    is_shipping: bool
    payment_method: int | None = None
    details: list[OrderDetailOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class OrdersListResponse(BaseModel):
    data: list[OrderOut]
    count: int
