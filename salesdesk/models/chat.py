"""ORM models for chat conversations and their participants."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from salesdesk.models.base import Base


class ChatConversation(Base):
    """Direct or group conversation; name is only kept for groups."""

    __tablename__ = "chat_conversations"

    conversation_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=True)
    is_group = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    participants = relationship(
        "ChatParticipant",
        back_populates="conversation",
        cascade="all, delete-orphan",
    )


class ChatParticipant(Base):
    __tablename__ = "chat_participants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_chat_participants_member"),
    )

    participant_id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        Integer,
        ForeignKey("chat_conversations.conversation_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(36), nullable=False, index=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    joined_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    conversation = relationship("ChatConversation", back_populates="participants")
