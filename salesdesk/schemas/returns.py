"""Request/response schemas for partner return requests."""

from datetime import datetime

from pydantic import BaseModel, Field


class ReturnCreateRequest(BaseModel):
    name_return: str | None = None
    order_id: str | None = None
    return_reason: str | None = None
    refund_amount: float | None = Field(default=None, allow_inf_nan=False)
    status: str | None = None


class ReturnStatusUpdate(BaseModel):
    status: str | None = None


class ReturnOut(BaseModel):
    return_id: int
    name_return: str | None = None
    order_id: str
    return_date: datetime | None = None
    return_reason: str
    refund_amount: float | None = None
    status: str

    class Config:
        from_attributes = True


class ReturnsListResponse(BaseModel):
    data: list[ReturnOut]
    count: int
