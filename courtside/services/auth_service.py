"""
Authentication and identity related use cases.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from courtside.core.config import Settings, get_settings
from courtside.core.errors import (
    AccountExistsError,
    DeliveryError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    TokenInvalidError,
)
from courtside.core.mailer import send_email
from courtside.core.security import hash_password, needs_rehash, verify_password
from courtside.core.tokens import issue_token, verify_token
from courtside.core.utils import absolute_url, as_utc, utcnow
from courtside.db.models import User
from courtside.domain.accounts import is_valid_email, is_valid_username, normalize_email
from courtside.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user: User
    token: str


@dataclass
class AuthService:
    """Handles registration, login, token authentication and password reset flows."""

    repository: SQLRepository = field(default_factory=SQLRepository)
    mailer: Callable[..., None] = send_email
    clock: Callable[[], datetime] = utcnow
    settings: Settings = field(default_factory=get_settings)

    # -------------------------------------- helpers --------------------------------------
    def _token_for(self, user: User) -> str:
        return issue_token({"sub": user.id, "admin": bool(user.is_admin)}, self.settings.token_ttl_seconds)

    def _check_password(self, password: str) -> None:
        minimum = self.settings.password_min_length
        if len(password or "") < minimum:
            raise InvalidInputError(f"Password must be at least {minimum} characters.")

    def _reset_expired(self, user: User) -> bool:
        expires_at = as_utc(user.reset_token_expires_at)
        return expires_at is None or expires_at <= self.clock()

    # -------------------------------------- registration --------------------------------------
    def register(self, username: str, email: str, password: str) -> AuthResult:
        username_value = (username or "").strip()
        email_value = normalize_email(email)
        if not is_valid_username(username_value):
            raise InvalidInputError("Username must be 3-32 characters [A-Za-z0-9_.-].")
        if not is_valid_email(email_value):
            raise InvalidInputError("A valid email is required.")
        self._check_password(password)
        if self.repository.get_user_by_email(email_value):
            raise AccountExistsError("Email already exists.")
        if self.repository.get_user_by_username(username_value):
            raise AccountExistsError("Username already taken.")
        user = self.repository.create_user(username_value, email_value, hash_password(password))
        logger.info("User %s registered", user.id)
        return AuthResult(user=user, token=self._token_for(user))

    # -------------------------------------- login --------------------------------------
    def login(self, email: str, password: str) -> AuthResult:
        user = self.repository.get_user_by_email(normalize_email(email))
        if not user or not verify_password(password or "", user.password_hash):
            raise InvalidCredentialsError("Email or password is incorrect.")
        if needs_rehash(user.password_hash):
            self.repository.update_user_password(user.id, hash_password(password))
        return AuthResult(user=user, token=self._token_for(user))

    def authenticate(self, token: str) -> User:
        claims = verify_token(token)
        user = self.repository.get_user(str(claims["sub"]))
        if user is None:
            raise TokenInvalidError("Invalid token.")
        return user

    def get_user(self, user_id: str) -> User:
        user = self.repository.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    def resolve_user(self, identifier: str) -> User:
        """Find a user by id, then username, then email."""
        user = self.repository.find_user(identifier)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    # -------------------------------------- password reset --------------------------------------
    def issue_password_reset(self, email: str) -> bool:
        user = self.repository.get_user_by_email(normalize_email(email))
        if not user:
            return False
        code = secrets.token_urlsafe(24)
        expires_at = self.clock() + timedelta(seconds=self.settings.password_reset_ttl)
        self.repository.set_reset_token(user.id, code, expires_at)
        reset_url = absolute_url(f"/reset-password?code={code}")
        html_body = f"""
        <p>Hi {user.username},</p>
        <p>We received a request to reset your password.</p>
        <p><a href="{reset_url}">Reset password</a></p>
        <p>If it wasn't you, just ignore this message.</p>
        """
        try:
            self.mailer("Reset your password", user.email, html_body, f"Use this link to reset your password: {reset_url}")
        except DeliveryError as exc:
            logger.warning("Password reset issued for %s but email failed: %s", user.id, exc.message)
        return True

    def validate_reset_token(self, code: str) -> Optional[str]:
        """Return the email owning ``code`` when it is known and not expired."""
        code = (code or "").strip()
        user = self.repository.get_user_by_reset_token(code)
        if not user:
            return None
        if self._reset_expired(user):
            self.repository.clear_reset_token(user.id)
            return None
        return user.email

    def reset_password(self, code: str, password: str) -> str:
        code = (code or "").strip()
        user = self.repository.get_user_by_reset_token(code)
        if not user:
            raise TokenInvalidError("Reset code is invalid or expired.")
        if self._reset_expired(user):
            self.repository.clear_reset_token(user.id)
            raise TokenInvalidError("Reset code is invalid or expired.")
        self._check_password(password)
        self.repository.update_user_password(user.id, hash_password(password))
        self.repository.clear_reset_token(user.id)
        logger.info("Password reset for user %s", user.id)
        return user.email
