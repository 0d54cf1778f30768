"""Request/response schemas for product categories."""

from pydantic import BaseModel


class CategoryPayload(BaseModel):
    """Create/update body; required fields are checked for presence by the handler."""

    name_category: str | None = None
    description_category: str | None = None
    image_category: str | None = None


class CategoryOut(BaseModel):
    category_id: int
    name_category: str
    description_category: str
    image_category: str | None = None

    class Config:
        from_attributes = True
