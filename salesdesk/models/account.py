"""ORM models for application accounts (role/status) and user profiles."""

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, func

from salesdesk.models.base import Base


class Account(Base):
    """
    Application-side mirror of an identity user, used for role checks.

    role: 'admin', 'staff' or another free-form string
    status: 'active' or 'pending' (pending until the first password change)
    """

    __tablename__ = "accounts"

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, unique=True, index=True)
    username = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="staff")
    status = Column(String(32), nullable=False, default="pending")
    last_login = Column(DateTime(timezone=True), nullable=True)
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


class UserProfile(Base):
    """Personal details of a user; soft-deleted (del=True, personal fields cleared) on removal."""

    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    full_name = Column(String(255), nullable=False, default="")
    phone = Column(String(32), nullable=True, index=True)
    hometown = Column(String(255), nullable=True)
    birth_date = Column(Date, nullable=True)
    # Column is named "del" in the database; "del" is a Python keyword.
    deleted = Column("del", Boolean, nullable=False, default=False)
