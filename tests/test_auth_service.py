from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from courtside.core.errors import (
    AccountExistsError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    TokenInvalidError,
)
from courtside.core.tokens import issue_token, verify_token
from courtside.services.auth_service import AuthService


class Clock:
    def __init__(self) -> None:
        self.now = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> Clock:
    return Clock()


@pytest.fixture()
def auth(repo, mailbox, clock) -> AuthService:
    return AuthService(repository=repo, mailer=mailbox, clock=clock)


def test_register_and_login(auth):
    registered = auth.register("Alice", "Alice@Example.com", "s3cret-pass")

    assert registered.user.email == "alice@example.com"
    assert registered.user.password_hash != "s3cret-pass"
    assert verify_token(registered.token)["sub"] == registered.user.id

    logged = auth.login("ALICE@example.com", "s3cret-pass")
    assert logged.user.id == registered.user.id
    assert auth.authenticate(logged.token).id == registered.user.id


def test_register_rejects_duplicates_case_insensitively(auth):
    auth.register("alice", "alice@example.com", "s3cret-pass")

    with pytest.raises(AccountExistsError):
        auth.register("bob", "ALICE@example.com", "s3cret-pass")
    with pytest.raises(AccountExistsError):
        auth.register("ALICE", "other@example.com", "s3cret-pass")


@pytest.mark.parametrize(
    "username,email,password",
    [
        ("al", "al@example.com", "s3cret-pass"),
        ("alice smith", "alice@example.com", "s3cret-pass"),
        ("alice", "not-an-email", "s3cret-pass"),
        ("alice", "alice@example.com", "short"),
    ],
)
def test_register_validates_input(auth, username, email, password):
    with pytest.raises(InvalidInputError):
        auth.register(username, email, password)


def test_login_rejects_bad_credentials(auth):
    auth.register("alice", "alice@example.com", "s3cret-pass")

    with pytest.raises(InvalidCredentialsError):
        auth.login("alice@example.com", "wrong-pass")
    with pytest.raises(InvalidCredentialsError):
        auth.login("nobody@example.com", "s3cret-pass")


def test_authenticate_rejects_bad_tokens(auth, make_user):
    with pytest.raises(TokenInvalidError):
        auth.authenticate("garbage")
    with pytest.raises(TokenInvalidError):
        auth.authenticate(issue_token({"sub": "ghost"}))
    alice = make_user("alice")
    expired = datetime.now(timezone.utc) - timedelta(minutes=5)
    with pytest.raises(TokenInvalidError):
        auth.authenticate(jwt.encode({"sub": alice.id, "exp": expired}, "test-secret", algorithm="HS256"))


def test_password_reset_flow(auth, repo, mailbox):
    user = auth.register("alice", "alice@example.com", "s3cret-pass").user

    assert auth.issue_password_reset("ALICE@example.com") is True
    code = repo.get_user(user.id).reset_token
    assert code
    assert mailbox.sent[0]["to"] == "alice@example.com"
    assert code in mailbox.sent[0]["text"]
    assert auth.validate_reset_token(code) == "alice@example.com"

    assert auth.reset_password(code, "brand-new-pass") == "alice@example.com"
    assert repo.get_user(user.id).reset_token is None
    auth.login("alice@example.com", "brand-new-pass")
    with pytest.raises(InvalidCredentialsError):
        auth.login("alice@example.com", "s3cret-pass")
    with pytest.raises(TokenInvalidError):
        auth.reset_password(code, "another-pass")


def test_reset_for_unknown_email_is_silent(auth, mailbox):
    assert auth.issue_password_reset("nobody@example.com") is False
    assert mailbox.sent == []


def test_expired_reset_code_is_rejected_and_cleared(auth, repo, clock):
    user = auth.register("alice", "alice@example.com", "s3cret-pass").user
    auth.issue_password_reset("alice@example.com")
    code = repo.get_user(user.id).reset_token

    clock.now += timedelta(seconds=auth.settings.password_reset_ttl + 1)

    with pytest.raises(TokenInvalidError):
        auth.reset_password(code, "brand-new-pass")
    assert repo.get_user(user.id).reset_token is None
    assert auth.validate_reset_token(code) is None


def test_reset_rejects_short_password_and_keeps_code(auth, repo):
    user = auth.register("alice", "alice@example.com", "s3cret-pass").user
    auth.issue_password_reset("alice@example.com")
    code = repo.get_user(user.id).reset_token

    with pytest.raises(InvalidInputError):
        auth.reset_password(code, "short")
    assert repo.get_user(user.id).reset_token == code


def test_reset_unknown_code(auth):
    with pytest.raises(TokenInvalidError):
        auth.reset_password("", "brand-new-pass")
    with pytest.raises(TokenInvalidError):
        auth.reset_password("never-issued", "brand-new-pass")


def test_reset_survives_email_failure(repo, broken_mailbox):
    auth = AuthService(repository=repo, mailer=broken_mailbox)
    user = auth.register("alice", "alice@example.com", "s3cret-pass").user

    assert auth.issue_password_reset("alice@example.com") is True
    assert repo.get_user(user.id).reset_token


def test_resolve_user(auth, make_user):
    bob = make_user("Bob")

    assert auth.resolve_user(bob.id).id == bob.id
    assert auth.resolve_user("bob").id == bob.id
    assert auth.resolve_user("BOB@example.com").id == bob.id
    with pytest.raises(NotFoundError):
        auth.resolve_user("nobody")
