"""ORM model for store branches."""

from sqlalchemy import Column, Integer, String, Text

from salesdesk.models.base import Base


class Branch(Base):
    __tablename__ = "branches"

    branch_id = Column(Integer, primary_key=True, autoincrement=True)
    branch_name = Column(String(255), nullable=False)
    branch_address = Column(Text, nullable=False)
    # user_id of the managing staff member.
    manager_id = Column(String(36), nullable=True, index=True)
