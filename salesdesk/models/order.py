"""ORM models for sales orders and their line items."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import relationship

from salesdesk.models.base import Base


class Order(Base):
    """One sale; order_id is a readable key such as ORD12345678."""

    __tablename__ = "orders"

    order_id = Column(String(32), primary_key=True)
    customer_id = Column(String(36), nullable=True, index=True)
    order_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    price = Column(Numeric(14, 2), nullable=False, default=0)
    status = Column(String(64), nullable=False)
    is_shipping = Column(Boolean, nullable=False, default=False)
    payment_method = Column(Integer, nullable=True)

    details = relationship(
        "OrderDetail",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderDetail.order_detail_id",
    )


class OrderDetail(Base):
    __tablename__ = "order_details"

    order_detail_id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        String(32),
        ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(Integer, nullable=True)
    name_product = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False)

    order = relationship("Order", back_populates="details")
