# src/pinloop/api/v1/endpoints/conversations.py
"""Conversation and direct message endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, status

from pinloop.api.v1.dependencies import CurrentUserDep, GatewayDep, SessionDep
from pinloop.core.settings import settings
from pinloop.schemas import (
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
)
from pinloop.services.conversations import ConversationService
from pinloop.services.messages import MessageService

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[ConversationResponse]:
    """List the current user's conversations with unread counts."""
    return ConversationService(db).list_for_user(current_user.user_id)


@router.post("", response_model=ConversationResponse)
async def get_or_create_conversation(
    payload: ConversationCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ConversationResponse:
    """Return the conversation with another user, creating it on first contact."""
    return ConversationService(db).get_or_create(current_user.user_id, payload.participant_id)


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(settings.message_page_default, ge=1, le=settings.message_page_max),
    before: datetime | None = Query(None, description="Only messages created strictly earlier"),
) -> list[MessageResponse]:
    """Get a page of messages, oldest first, marking incoming ones read."""
    return MessageService(db).list_messages(conversation_id, current_user.user_id, limit, before)


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: int,
    payload: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    gateway: GatewayDep,
) -> MessageResponse:
    """Send a message and push it to the room and the other participant."""
    return MessageService(db, gateway).send_message(
        conversation_id,
        current_user.user_id,
        payload.content,
    )
