"""ORM model for shop customers (people who buy, not staff logins)."""

import uuid

from sqlalchemy import Column, DateTime, String, func

from salesdesk.models.base import Base


class Customer(Base):
    __tablename__ = "customers"

    customer_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String(255), nullable=False, index=True)
    phone = Column(String(32), nullable=False, unique=True)
    email = Column(String(255), nullable=True, unique=True)
    address = Column(String(512), nullable=True)
    hometown = Column(String(255), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
