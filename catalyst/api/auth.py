"""Registration, login and session endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlmodel import Session

from catalyst.core.database import get_session
from catalyst.core.ratelimit import limit_auth
from catalyst.core.security import AuthContext, end_session, require_auth, start_session
from catalyst.services import auth
from catalyst.services.auth import public_user

router = APIRouter()
logger = logging.getLogger(__name__)


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/register", dependencies=[Depends(limit_auth)])
async def register(body: RegisterRequest, request: Request, session: Session = Depends(get_session)):
    user = auth.register(session, body.username, body.email, body.password)
    start_session(request, user)
    return public_user(user)


@router.post("/login", dependencies=[Depends(limit_auth)])
async def login(body: LoginRequest, request: Request, session: Session = Depends(get_session)):
    user = auth.login(session, body.username, body.password)
    start_session(request, user)
    logger.debug(f"User {user.username} logged in")
    return public_user(user)


@router.post("/logout")
async def logout(request: Request, ctx: AuthContext = Depends(require_auth)):
    end_session(request)
    logger.debug(f"User {ctx.user_id} logged out")
    return {"success": True}


@router.get("/user")
async def current_user(ctx: AuthContext = Depends(require_auth)):
    return public_user(ctx.user)
