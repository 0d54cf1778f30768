"""ORM model for payment methods (cash, bank transfer, ...)."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from salesdesk.models.base import Base


class PaymentMethod(Base):
    """Referenced by orders.payment_method."""

    __tablename__ = "payments"

    payment_id = Column(Integer, primary_key=True, autoincrement=True)
    payment_method_name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    # Staff member who added the method.
    user_id = Column(String(36), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
