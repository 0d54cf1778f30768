"""Request/response schemas for chat conversations."""

from datetime import datetime

from pydantic import BaseModel, Field


class CreateConversationRequest(BaseModel):
    users: list[str] | None = None
    name: str | None = None
    is_group: bool = Field(default=False, alias="isGroup")

    class Config:
        populate_by_name = True


class ParticipantOut(BaseModel):
    user_id: str
    is_admin: bool

    class Config:
        from_attributes = True


class ConversationOut(BaseModel):
    conversation_id: int
    name: str | None = None
    is_group: bool
    created_at: datetime | None = None
    participants: list[ParticipantOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class CreateConversationResponse(BaseModel):
    success: bool = True
    conversation: ConversationOut


class ConversationsListResponse(BaseModel):
    conversations: list[ConversationOut]
