"""Request/response schemas for products."""

from datetime import datetime

from pydantic import BaseModel, Field


class ProductPayload(BaseModel):
    """Create/replace body; product_name and price are checked by the handler."""

    product_name: str | None = None
    category_id: int | None = None
    description: str | None = None
    color: str | None = None
    size: str | None = None
    price: float | None = Field(default=None, allow_inf_nan=False)
    stock_quantity: int | None = None
    image: str | None = None


class ProductOut(BaseModel):
    product_id: int
    product_name: str
    category_id: int | None = None
    description: str | None = None
    color: str | None = None
    size: str | None = None
    price: float
    stock_quantity: int
    image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class ProductsListResponse(BaseModel):
    data: list[ProductOut]
    count: int
