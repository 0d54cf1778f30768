"""ORM model for products in the catalogue."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from salesdesk.models.base import Base


class Product(Base):
    __tablename__ = "products"

    product_id = Column(Integer, primary_key=True, autoincrement=True)
    product_name = Column(String(255), nullable=False, index=True)
    category_id = Column(
        Integer,
        ForeignKey("category.category_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    description = Column(Text, nullable=True)
    color = Column(String(64), nullable=True)
    size = Column(String(64), nullable=True)
    price = Column(Numeric(14, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    # Public URL of the uploaded image.
    image = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    category = relationship("Category")
