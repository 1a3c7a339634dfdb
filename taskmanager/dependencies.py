"""FastAPI dependencies: per-request session, service wiring and the auth guard."""

from __future__ import annotations

import time
from collections.abc import Iterator
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import errors
from .database import Database, Deadline
from .repositories import SqlAlchemyTaskRepository, SqlAlchemyUserRepository
from .services import AuthService, TaskService
from .tokens import ACCESS, TokenManager

# auto_error=False so a missing header becomes our own 401 body
bearer_scheme = HTTPBearer(auto_error=False, scheme_name="Bearer")


def get_deadline(request: Request) -> Deadline:
    started = getattr(request.state, "started_at", None) or time.monotonic()
    return Deadline.after(request.app.state.settings.request_timeout, start=started)


def get_db(request: Request, deadline: Deadline = Depends(get_deadline)) -> Iterator[Session]:
    database: Database = request.app.state.database
    with database.session(deadline) as db:
        yield db


def get_token_manager(request: Request) -> TokenManager:
    return request.app.state.token_manager


def get_auth_service(
    db: Session = Depends(get_db),
    deadline: Deadline = Depends(get_deadline),
    tokens: TokenManager = Depends(get_token_manager),
) -> AuthService:
    return AuthService(SqlAlchemyUserRepository(db, deadline), tokens)


def get_task_service(
    db: Session = Depends(get_db),
    deadline: Deadline = Depends(get_deadline),
) -> TaskService:
    return TaskService(SqlAlchemyTaskRepository(db, deadline))


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenManager = Depends(get_token_manager),
    db: Session = Depends(get_db),
    deadline: Deadline = Depends(get_deadline),
) -> int:
    if credentials is None or not credentials.credentials:
        raise errors.Unauthenticated("missing bearer token")

    claims = tokens.validate_token(credentials.credentials)
    if claims.token_type != ACCESS:
        raise errors.InvalidToken("an access token is required")

    # a signed token may outlive its user
    try:
        user = SqlAlchemyUserRepository(db, deadline).find_by_id(claims.user_id)
    except errors.NotFound:
        raise errors.InvalidToken("user no longer exists")

    request.state.user_id = user.id
    return user.id
