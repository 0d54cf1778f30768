"""Request/response schemas for customers."""

from datetime import datetime

from pydantic import BaseModel


class CustomerPayload(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    hometown: str | None = None


class CustomerOut(BaseModel):
    customer_id: str
    full_name: str
    phone: str
    email: str | None = None
    address: str | None = None
    hometown: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
