"""Message send flow: persist the user turn, ask the provider, persist the reply."""

import logging
from dataclasses import dataclass

from sqlmodel import Session

from catalyst.core.config import settings
from catalyst.core.errors import NotFound, UpstreamFailure, ValidationError
from catalyst.core.security import AuthContext
from catalyst.models.conversation import Conversation, Message, Role
from catalyst.services.llm.base import BaseLLMProvider
from catalyst.services.storage import ConversationRepository, MessageRepository

logger = logging.getLogger(__name__)

# Persisted as the assistant turn when the provider fails
FALLBACK_MESSAGE = (
    "Desculpe, ocorreu um erro ao processar sua solicitação. Tente novamente mais tarde."
)

INSTRUCTION = (
    "Você é o Catalyst IA, um assistente prestativo. "
    "Responda de forma clara e objetiva."
)

TITLE_LENGTH = 50


def title_from_content(content: str) -> str:
    content = content.strip()
    if len(content) > TITLE_LENGTH:
        return content[:TITLE_LENGTH] + "..."
    return content


def validate_content(content: object) -> str:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Message content is required")
    if len(content) > settings.max_message_length:
        raise ValidationError(
            f"Message content must be at most {settings.max_message_length} characters"
        )
    return content


def build_prompt(history: list[Message], question: str, window: int | None = None) -> str:
    """Render the recent conversation plus the new question as one prompt.

    `history` is the conversation in creation order and already ends with the
    question's own message. With fewer than two messages there is no context
    to frame, so only the instruction and the question are sent.
    """
    window = window or settings.context_window
    recent = history[-window:]

    if len(recent) < 2:
        return f"{INSTRUCTION}\n\n{question}"

    lines = []
    for msg in recent[:-1]:
        speaker = "User" if msg.role == Role.USER.value else "Assistant"
        lines.append(f"{speaker}: {msg.content}")

    return (
        f"{INSTRUCTION}\n\n"
        "Conversa anterior:\n"
        + "\n".join(lines)
        + f"\n\nUser: {question}\nAssistant:"
    )


@dataclass
class ChatTurn:
    conversation: Conversation
    user_message: Message
    ai_message: Message


class ChatService:
    def __init__(self, session: Session, provider: BaseLLMProvider):
        self.conversations = ConversationRepository(session)
        self.messages = MessageRepository(session)
        self.provider = provider

    async def _ask(self, prompt: str) -> str:
        try:
            return await self.provider.complete(prompt)
        except UpstreamFailure as e:
            logger.warning(f"{self.provider.name} provider failed: {e.message}")
        except Exception:
            logger.exception(f"{self.provider.name} provider raised unexpectedly")
        return FALLBACK_MESSAGE

    async def send_message(self, auth: AuthContext, conversation_id: str, content: object) -> ChatTurn:
        content = validate_content(content)

        conversation = self.conversations.get(conversation_id, auth.user_id)
        if conversation is None:
            raise NotFound("Conversation not found")

        return await self._run_turn(conversation, content)

    async def start_conversation(self, auth: AuthContext, content: object) -> ChatTurn:
        """Create a conversation titled after the first message, then send it."""
        content = validate_content(content)
        conversation = self.conversations.create(auth.user_id, title_from_content(content))
        logger.debug(f"Started conversation {conversation.id} for user {auth.user_id}")
        return await self._run_turn(conversation, content)

    async def _run_turn(self, conversation: Conversation, content: str) -> ChatTurn:
        user_message = self.messages.create(conversation.id, content, Role.USER)

        history = self.messages.list_by_conversation(conversation.id)
        prompt = build_prompt(history, content)

        reply = await self._ask(prompt)
        ai_message = self.messages.create(conversation.id, reply, Role.ASSISTANT)

        return ChatTurn(conversation=conversation, user_message=user_message, ai_message=ai_message)
