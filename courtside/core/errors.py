"""
Error kinds shared by the Courtside services.

Services raise these; the HTTP layer turns them into JSON responses using
``status_code`` and ``to_dict()``. Subclasses inherit the ``kind`` of their
parent and add a more specific ``code``.
"""

from __future__ import annotations

from typing import Any


class CourtsideError(Exception):
    """Base class for every user-visible failure."""

    kind = "Error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        name = self.__class__.__name__
        return name[: -len("Error")] if name.endswith("Error") else name

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "code": self.code, "message": self.message}


class InvalidInputError(CourtsideError):
    kind = "InvalidInput"
    status_code = 400


class NotFoundError(CourtsideError):
    kind = "NotFound"
    status_code = 404


class ForbiddenError(CourtsideError):
    kind = "Forbidden"
    status_code = 403


class ConflictError(CourtsideError):
    kind = "Conflict"
    status_code = 409


class DuplicateEventError(ConflictError):
    pass


class DuplicateCommentError(ConflictError):
    pass


class AlreadyJoinedError(ConflictError):
    pass


class AlreadyInvitedError(ConflictError):
    pass


class NotJoinedError(ConflictError):
    pass


class AccountExistsError(ConflictError):
    pass


class ConcurrentModificationError(ConflictError):
    """Raised when an aggregate changed between load and save."""


class AuthError(CourtsideError):
    kind = "AuthError"
    status_code = 401


class InvalidCredentialsError(AuthError):
    pass


class TokenInvalidError(AuthError):
    pass


class DependencyFailure(CourtsideError):
    kind = "DependencyFailure"
    status_code = 503


class DeliveryError(DependencyFailure):
    """Outbound email could not be delivered."""
