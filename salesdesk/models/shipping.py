"""ORM model for order deliveries."""

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Numeric,
    String,
    Text,
    func,
)

from salesdesk.models.base import Base


class Shipping(Base):
    """
    Delivery of one order; shipping_id is a readable key such as SHP-20261019-04821.

    status: 'pending', 'shipped', 'delivered' or 'cancelled'
    """

    __tablename__ = "shippings"

    shipping_id = Column(String(32), primary_key=True)
    order_id = Column(
        String(32),
        ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    name_customer = Column(String(255), nullable=False)
    phone_customer = Column(String(32), nullable=False)
    shipping_address = Column(Text, nullable=False)
    carrier = Column(String(255), nullable=True)
    tracking_number = Column(String(64), nullable=True)
    shipping_cost = Column(Numeric(14, 2), nullable=False, default=0)
    # Cash the carrier collects on delivery.
    cod_shipping = Column(Numeric(14, 2), nullable=False, default=0)
    weight = Column(Float, nullable=True)
    unit_weight = Column(String(16), nullable=True)
    status = Column(String(32), nullable=False)
    delivery_date = Column(DateTime(timezone=True), nullable=True)
    actual_delivery_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
