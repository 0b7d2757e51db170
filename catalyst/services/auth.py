"""Registration and credential checks."""

import logging

from sqlmodel import Session

from catalyst.core.errors import AuthError, ValidationError
from catalyst.core.security import hash_password, verify_password
from catalyst.models.user import User
from catalyst.services.storage import UserRepository, as_utc

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 50


def public_user(user: User) -> dict:
    """The user as exposed over the API. Never includes the password hash."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "name": user.name,
        "bio": user.bio,
        "createdAt": as_utc(user.created_at).isoformat(),
    }


def register(session: Session, username: str, email: str, password: str) -> User:
    username = username.strip()
    email = email.strip().lower()

    errors = []
    if not MIN_USERNAME_LENGTH <= len(username) <= MAX_USERNAME_LENGTH:
        errors.append({
            "loc": ["body", "username"],
            "msg": f"Username must be {MIN_USERNAME_LENGTH}-{MAX_USERNAME_LENGTH} characters",
        })
    if "@" not in email:
        errors.append({"loc": ["body", "email"], "msg": "Invalid email address"})
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append({
            "loc": ["body", "password"],
            "msg": f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        })
    if errors:
        raise ValidationError("Invalid registration data", errors=errors)

    users = UserRepository(session)
    if users.get_by_username(username):
        raise ValidationError("Username already exists")
    if users.get_by_email(email):
        raise ValidationError("Email already registered")

    user = users.create(username, email, hash_password(password))
    logger.info(f"Registered user {user.username} ({user.id})")
    return user


def login(session: Session, username: str, password: str) -> User:
    user = UserRepository(session).get_by_username(username.strip())
    if user is None or not verify_password(user.password, password):
        logger.warning(f"Failed login for username {username!r}")
        raise AuthError()
    return user
