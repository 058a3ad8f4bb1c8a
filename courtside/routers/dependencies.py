"""Request-scoped helpers shared by the routers."""

from __future__ import annotations

from fastapi import Request

from courtside.core.tokens import bearer_token
from courtside.db.models import User
from courtside.services.account_service import AccountService
from courtside.services.auth_service import AuthService
from courtside.services.comment_service import CommentService
from courtside.services.event_service import EventService


def _service(request: Request, name: str):
    svc = getattr(getattr(request.app, "state", None), name, None)
    if not svc:
        raise RuntimeError(f"{name} is not configured")
    return svc


def get_auth_service(request: Request) -> AuthService:
    return _service(request, "auth_service")


def get_event_service(request: Request) -> EventService:
    return _service(request, "event_service")


def get_comment_service(request: Request) -> CommentService:
    return _service(request, "comment_service")


def get_account_service(request: Request) -> AccountService:
    return _service(request, "account_service")


def current_user(request: Request) -> User:
    """Resolve the user behind ``Authorization: Bearer <token>``."""
    token = bearer_token(request.headers.get("authorization"))
    return get_auth_service(request).authenticate(token)
