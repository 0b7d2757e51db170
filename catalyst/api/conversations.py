"""REST API for conversations and their messages."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlmodel import Session

from catalyst.core.database import get_session
from catalyst.core.errors import NotFound
from catalyst.core.ratelimit import limit_chat
from catalyst.core.security import AuthContext, require_auth
from catalyst.models.conversation import Conversation, Message
from catalyst.services.chat import ChatService
from catalyst.services.llm.base import BaseLLMProvider
from catalyst.services.storage import ConversationRepository, MessageRepository, as_utc

router = APIRouter()
logger = logging.getLogger(__name__)

# Path id that starts a conversation from its first message
NEW_CONVERSATION = "new"


class ConversationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)


class MessageCreate(BaseModel):
    # Type and length are checked by ChatService so the error shape matches
    # the message-send contract.
    content: Any = None


def get_llm(request: Request) -> BaseLLMProvider:
    return request.app.state.llm_provider


def conversation_dict(c: Conversation) -> dict:
    return {
        "id": c.id,
        "userId": c.user_id,
        "title": c.title,
        "createdAt": as_utc(c.created_at).isoformat(),
        "updatedAt": as_utc(c.updated_at).isoformat(),
    }


def message_dict(m: Message) -> dict:
    return {
        "id": m.id,
        "conversationId": m.conversation_id,
        "content": m.content,
        "role": m.role,
        "imageUrl": m.image_url,
        "createdAt": as_utc(m.created_at).isoformat(),
    }


@router.get("")
async def list_conversations(
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    conversations = ConversationRepository(session).list(ctx.user_id)
    return [conversation_dict(c) for c in conversations]


@router.post("")
async def create_conversation(
    body: ConversationCreate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    title = body.title.strip() or "Nova conversa"
    conv = ConversationRepository(session).create(ctx.user_id, title)
    return conversation_dict(conv)


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    if not ConversationRepository(session).delete(conversation_id, ctx.user_id):
        logger.debug(f"Delete: conversation {conversation_id} not found for user {ctx.user_id}")
        raise NotFound("Conversation not found")
    return {"success": True}


@router.get("/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    if ConversationRepository(session).get(conversation_id, ctx.user_id) is None:
        raise NotFound("Conversation not found")

    messages = MessageRepository(session).list_by_conversation(conversation_id)
    return [message_dict(m) for m in messages]


@router.post("/{conversation_id}/messages", dependencies=[Depends(limit_chat)])
async def send_message(
    conversation_id: str,
    body: MessageCreate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
    llm: BaseLLMProvider = Depends(get_llm),
):
    chat = ChatService(session, llm)
    if conversation_id == NEW_CONVERSATION:
        turn = await chat.start_conversation(ctx, body.content)
    else:
        turn = await chat.send_message(ctx, conversation_id, body.content)

    return {
        "userMessage": message_dict(turn.user_message),
        "aiMessage": message_dict(turn.ai_message),
        "conversationId": turn.conversation.id,
    }
