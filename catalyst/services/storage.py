"""Repositories for users, conversations and messages.

Each repository borrows a SQLModel session from the caller; the engine and
its connection pool are owned by the application.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete
from sqlmodel import Session, select

from catalyst.core.errors import ParseError
from catalyst.models.conversation import Conversation, Message, Role
from catalyst.models.preferences import UserPreferences, parse_preferences, serialize_preferences
from catalyst.models.user import User

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        return self.session.exec(select(User).where(User.username == username)).first()

    def get_by_email(self, email: str) -> User | None:
        return self.session.exec(select(User).where(User.email == email)).first()

    def create(self, username: str, email: str, password_hash: str) -> User:
        user = User(username=username, email=email, password=password_hash)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_preferences(self, user: User) -> UserPreferences:
        """Stored preferences, or the defaults when the stored blob is corrupt."""
        try:
            return parse_preferences(user.preferences)
        except ParseError as e:
            logger.warning(f"Ignoring corrupt preferences for user {user.id}: {e.message}")
            return UserPreferences()

    def update_profile(
        self,
        user: User,
        name: str | None = None,
        bio: str | None = None,
        preferences: UserPreferences | None = None,
    ) -> User:
        if name is not None:
            user.name = name
        if bio is not None:
            user.bio = bio
        if preferences is not None:
            user.preferences = serialize_preferences(preferences)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user


class ConversationRepository:
    def __init__(self, session: Session):
        self.session = session

    def list(self, user_id: str) -> list[Conversation]:
        return list(self.session.exec(
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.updated_at.desc())  # type: ignore
        ).all())

    def get(self, conversation_id: str, user_id: str) -> Conversation | None:
        """The conversation, or None if it is missing or owned by someone else."""
        return self.session.exec(
            select(Conversation).where(
                Conversation.id == conversation_id,
                Conversation.user_id == user_id,
            )
        ).first()

    def create(self, user_id: str, title: str) -> Conversation:
        now = utcnow()
        conv = Conversation(user_id=user_id, title=title, created_at=now, updated_at=now)
        self.session.add(conv)
        self.session.commit()
        self.session.refresh(conv)
        return conv

    def delete(self, conversation_id: str, user_id: str) -> bool:
        """Delete an owned conversation and its messages in one transaction."""
        conv = self.get(conversation_id, user_id)
        if conv is None:
            return False
        try:
            self.session.exec(delete(Message).where(Message.conversation_id == conversation_id))  # type: ignore
            self.session.delete(conv)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.debug(f"Deleted conversation {conversation_id}")
        return True


class MessageRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_by_conversation(self, conversation_id: str) -> list[Message]:
        return list(self.session.exec(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at)  # type: ignore
        ).all())

    def _next_timestamp(self, conversation_id: str) -> datetime:
        # Keep created_at strictly increasing within a conversation so that
        # timestamp order always equals insertion order.
        now = utcnow()
        last = self.session.exec(
            select(Message.created_at)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc())  # type: ignore
        ).first()
        if last is not None and as_utc(last) >= now:
            return as_utc(last) + timedelta(microseconds=1)
        return now

    def create(
        self,
        conversation_id: str,
        content: str,
        role: Role | str,
        image_url: str | None = None,
    ) -> Message:
        role = Role(role)
        created_at = self._next_timestamp(conversation_id)
        msg = Message(
            conversation_id=conversation_id,
            content=content,
            role=role.value,
            image_url=image_url,
            created_at=created_at,
        )
        self.session.add(msg)

        conv = self.session.get(Conversation, conversation_id)
        if conv:
            conv.updated_at = created_at
            self.session.add(conv)

        self.session.commit()
        self.session.refresh(msg)
        return msg
