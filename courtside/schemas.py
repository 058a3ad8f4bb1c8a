"""
Request and response models for the JSON API.

Field names are exposed in camelCase (``eventType``, ``isPublic``) and accepted
in either camelCase or snake_case.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from courtside.db.models import User
from courtside.domain.events import Comment, EventDocument


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------------------------- users --------------------------------------
class RegisterRequest(_CamelModel):
    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(_CamelModel):
    email: str = ""
    password: str = ""


class ForgotPasswordRequest(_CamelModel):
    email: str = ""


class ResetPasswordRequest(_CamelModel):
    code: str = ""
    password: str = ""


class UserOut(_CamelModel):
    id: str
    username: str
    email: str
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(id=user.id, username=user.username, email=user.email, is_admin=bool(user.is_admin))


class AuthResponse(_CamelModel):
    user: UserOut
    token: str


class DeleteUserResponse(_CamelModel):
    message: str
    comments_removed: int
    events_deleted: int


# -------------------------------------- events --------------------------------------
class EventFields(_CamelModel):
    """Every field is optional here; presence and format are checked by the service."""

    date: Optional[str] = None
    time: Optional[str] = None
    event_type: Optional[str] = None
    is_public: Optional[bool] = None
    fees: Optional[float] = None
    is_indoor: Optional[bool] = None
    address: Optional[str] = None
    weather: Optional[str] = None


class CommentRequest(_CamelModel):
    text: str = Field(default="", validation_alias=AliasChoices("text", "comment"))


class InviteRequest(_CamelModel):
    """Identify the invitee by user id, username or email."""

    user: str = ""


class CommentOut(_CamelModel):
    username: str
    text: str
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentOut":
        return cls(username=comment.username, text=comment.text, created_at=comment.created_at)


class EventOut(_CamelModel):
    id: str
    date: datetime
    time: str
    event_type: str
    is_public: bool
    fees: float
    is_indoor: bool
    address: str
    weather: str
    created_by: str
    invited_players: list[str]
    joined_players: list[str]
    comments: list[CommentOut]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_time: Optional[str] = None

    @classmethod
    def from_document(cls, doc: EventDocument) -> "EventOut":
        return cls(
            id=doc.id,
            date=doc.date,
            time=doc.time,
            event_type=doc.event_type,
            is_public=doc.is_public,
            fees=doc.fees,
            is_indoor=doc.is_indoor,
            address=doc.address,
            weather=doc.weather,
            created_by=doc.created_by,
            invited_players=list(doc.invited_players),
            joined_players=list(doc.joined_players),
            comments=[CommentOut.from_comment(c) for c in doc.comments],
            created_at=doc.created_at,
            updated_at=doc.updated_at,
            updated_time=doc.updated_time,
        )


class InviteResponse(_CamelModel):
    event: EventOut
    invitee_id: str
    email_sent: bool


class MessageResponse(_CamelModel):
    message: str
