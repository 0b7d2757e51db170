"""User accounts."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    username: str = Field(unique=True, index=True)
    email: str = Field(unique=True, index=True)
    password: str  # salted hash, never serialized
    name: Optional[str] = None
    bio: Optional[str] = None
    preferences: Optional[str] = None  # JSON text, see catalyst.models.preferences
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
