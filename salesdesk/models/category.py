"""ORM model for product categories."""

from sqlalchemy import Column, Integer, String, Text

from salesdesk.models.base import Base


class Category(Base):
    __tablename__ = "category"

    category_id = Column(Integer, primary_key=True, autoincrement=True)
    name_category = Column(String(255), nullable=False, unique=True)
    description_category = Column(Text, nullable=False)
    # URL, path or base64 data of the category image.
    image_category = Column(Text, nullable=True)
