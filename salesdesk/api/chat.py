"""Chat conversations: create one with its participants, list the caller's conversations."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from salesdesk.api.deps import get_current_session
from salesdesk.core.database import atomic, get_db
from salesdesk.core.errors import bad_request, is_blank, server_error
from salesdesk.models import ChatConversation, ChatParticipant
from salesdesk.schemas.chat import (
    ConversationOut,
    ConversationsListResponse,
    CreateConversationRequest,
    CreateConversationResponse,
)
from salesdesk.services.identity import IdentitySession

logger = logging.getLogger(__name__)
router = APIRouter()


def _other_members(users: list[str], creator_id: str) -> list[str]:
    """Requested members without the creator, blanks or repeats; first-seen order."""
    seen: set[str] = {creator_id}
    members: list[str] = []
    for user_id in users:
        if is_blank(user_id):
            continue
        user_id = user_id.strip()
        if user_id in seen:
            continue
        seen.add(user_id)
        members.append(user_id)
    return members


@router.post("/create-conversation", response_model=CreateConversationResponse)
def create_conversation(
    body: CreateConversationRequest,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> CreateConversationResponse:
    """
    Create a conversation with the caller as its admin and the given users as members.

    The conversation and all participant rows are written in one transaction.
    """
    if not body.users:
        raise bad_request("Invalid users array")

    creator_id = session.user.id
    conversation = ChatConversation(
        name=body.name if body.is_group else None,
        is_group=body.is_group,
    )
    try:
        with atomic(db):
            db.add(conversation)
            db.flush()
            db.add(
                ChatParticipant(
                    conversation_id=conversation.conversation_id,
                    user_id=creator_id,
                    is_admin=True,
                )
            )
            for user_id in _other_members(body.users, creator_id):
                db.add(
                    ChatParticipant(
                        conversation_id=conversation.conversation_id,
                        user_id=user_id,
                        is_admin=False,
                    )
                )
            db.flush()
    except SQLAlchemyError as e:
        logger.exception("Conversation not created", extra={"user_id": creator_id})
        raise server_error("Failed to create conversation") from e

    db.refresh(conversation)
    logger.info(
        "Conversation created",
        extra={
            "conversation_id": conversation.conversation_id,
            "participants": len(conversation.participants),
        },
    )
    return CreateConversationResponse(
        conversation=ConversationOut.model_validate(conversation)
    )


@router.get("/conversations", response_model=ConversationsListResponse)
def list_conversations(
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> ConversationsListResponse:
    """Conversations the caller takes part in, newest first."""
    try:
        rows = (
            db.query(ChatConversation)
            .join(ChatParticipant)
            .filter(ChatParticipant.user_id == session.user.id)
            .options(selectinload(ChatConversation.participants))
            .order_by(ChatConversation.created_at.desc(), ChatConversation.conversation_id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Listing conversations failed")
        raise server_error("Failed to load conversations") from e
    return ConversationsListResponse(
        conversations=[ConversationOut.model_validate(c) for c in rows]
    )
