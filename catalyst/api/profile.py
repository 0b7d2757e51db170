"""REST API for the signed-in user's profile and preferences."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from catalyst.core.database import get_session
from catalyst.core.security import AuthContext, require_auth
from catalyst.models.preferences import FontSize, Theme
from catalyst.models.user import User
from catalyst.services.auth import public_user
from catalyst.services.storage import UserRepository

router = APIRouter()


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    theme: Theme | None = None
    language: str | None = Field(default=None, min_length=2, max_length=20)
    notifications: bool | None = None
    font_size: FontSize | None = None


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    preferences: PreferencesUpdate | None = None


def _profile(users: UserRepository, user: User) -> dict:
    return {
        **public_user(user),
        "preferences": users.get_preferences(user).model_dump(),
    }


@router.get("/profile")
async def get_profile(ctx: AuthContext = Depends(require_auth), session: Session = Depends(get_session)):
    users = UserRepository(session)
    return _profile(users, ctx.user)


@router.put("/profile")
async def update_profile(
    body: ProfileUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    users = UserRepository(session)
    user = ctx.user

    preferences = None
    if body.preferences is not None:
        changes = body.preferences.model_dump(exclude_none=True)
        preferences = users.get_preferences(user).model_copy(update=changes)

    user = users.update_profile(user, name=body.name, bio=body.bio, preferences=preferences)
    return _profile(users, user)
