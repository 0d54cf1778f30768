"""ORM model for partner return requests."""

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, func

from salesdesk.models.base import Base


class ReturnRequest(Base):
    __tablename__ = "returns"

    return_id = Column(Integer, primary_key=True, autoincrement=True)
    name_return = Column(String(255), nullable=True)
    order_id = Column(String(32), nullable=False, index=True)
    return_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    return_reason = Column(Text, nullable=False)
    refund_amount = Column(Numeric(14, 2), nullable=True)
    status = Column(String(64), nullable=False)
