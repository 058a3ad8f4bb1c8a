from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the courtside package importable during local test runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from courtside.core import config as core_config  # noqa: E402
from courtside.core.errors import DeliveryError  # noqa: E402
from courtside.core.rate_limiter import reset_rate_limits  # noqa: E402
from courtside.db import create_tables  # noqa: E402
from courtside.db import session as db_session  # noqa: E402
from courtside.repositories.sql_repository import SQLRepository  # noqa: E402


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Point DATABASE_URL at a temporary SQLite file and reset settings/engine caches."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://courtside.test")
    for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "SMTP_FROM"):
        monkeypatch.delenv(name, raising=False)
    core_config.get_settings.cache_clear()
    db_session.reset_engine()
    reset_rate_limits()

    create_tables.create_all()

    yield db_file

    db_session.get_engine().dispose()
    db_session.reset_engine()
    core_config.get_settings.cache_clear()


@pytest.fixture()
def repo(db_env) -> SQLRepository:
    return SQLRepository()


@pytest.fixture()
def make_user(repo):
    """Create users directly in the store (password hashing is not exercised here)."""

    def _make(username: str, *, is_admin: bool = False):
        return repo.create_user(username, f"{username.lower()}@example.com", "digest", is_admin=is_admin)

    return _make


class MailRecorder:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    def __call__(self, subject, to_email, html_body, text_body=None):
        if self.fail:
            raise DeliveryError("Email could not be delivered.")
        self.sent.append({"subject": subject, "to": to_email, "html": html_body, "text": text_body})


@pytest.fixture()
def mailbox() -> MailRecorder:
    return MailRecorder()


@pytest.fixture()
def broken_mailbox() -> MailRecorder:
    return MailRecorder(fail=True)


@pytest.fixture()
def before_first_call(monkeypatch):
    """Patch ``obj.method`` so ``hook`` runs once, right before its first call."""

    def _install(obj, method: str, hook) -> None:
        original = getattr(obj, method)
        pending = [hook]

        def wrapped(*args, **kwargs):
            if pending:
                pending.pop()()
            return original(*args, **kwargs)

        monkeypatch.setattr(obj, method, wrapped)

    return _install
