"""Password hashing, cookie sessions and the route guard."""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlmodel import Session
from werkzeug.security import check_password_hash, generate_password_hash

from catalyst.core.database import get_session
from catalyst.core.errors import Unauthorized
from catalyst.models.user import User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def start_session(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def end_session(request: Request) -> None:
    request.session.clear()


@dataclass
class AuthContext:
    """Identity resolved for the current request."""

    user_id: str
    user: User


def require_auth(request: Request, session: Session = Depends(get_session)) -> AuthContext:
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise Unauthorized()

    user = session.get(User, user_id)
    if user is None:
        logger.debug(f"Session references unknown user {user_id}")
        request.session.clear()
        raise Unauthorized()

    return AuthContext(user_id=user.id, user=user)
