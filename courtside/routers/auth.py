from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from courtside.core.errors import TokenInvalidError
from courtside.core.rate_limiter import rate_limit_ip
from courtside.db.models import User
from courtside.routers.dependencies import current_user, get_account_service, get_auth_service
from courtside.schemas import (
    AuthResponse,
    DeleteUserResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserOut,
)
from courtside.services.account_service import AccountService
from courtside.services.auth_service import AuthService

router = APIRouter(prefix="/api/user", tags=["user"])

FORGOT_MESSAGE = "If the email is registered, a reset link is on its way."


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.register(body.username, body.email, body.password)
    return AuthResponse(user=UserOut.from_user(result.user), token=result.token)


@router.post("/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    rate_limit_ip(request, "auth:login", limit=20, window_seconds=300)
    result = auth.login(body.email, body.password)
    return AuthResponse(user=UserOut.from_user(result.user), token=result.token)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(current_user)):
    return UserOut.from_user(user)


@router.post("/forgot", response_model=MessageResponse)
def forgot_password(request: Request, body: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    rate_limit_ip(request, "auth:forgot", limit=5, window_seconds=300)
    auth.issue_password_reset(body.email)
    return MessageResponse(message=FORGOT_MESSAGE)


@router.get("/reset/{code}", response_model=MessageResponse)
def check_reset_code(code: str, auth: AuthService = Depends(get_auth_service)):
    if not auth.validate_reset_token(code):
        raise TokenInvalidError("Reset code is invalid or expired.")
    return MessageResponse(message="Reset code is valid.")


@router.post("/reset", response_model=MessageResponse)
def reset_password(body: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password(body.code, body.password)
    return MessageResponse(message="Password updated.")


@router.delete("/{user_id}", response_model=DeleteUserResponse)
def delete_user(
    user_id: str,
    user: User = Depends(current_user),
    accounts: AccountService = Depends(get_account_service),
):
    report = accounts.delete_user(user_id, user.id, bool(user.is_admin))
    return DeleteUserResponse(
        message="User and related events deleted.",
        comments_removed=report.comments_removed,
        events_deleted=report.events_deleted,
    )
