"""
Event aggregate and the membership/comment rules applied to it.

An EventDocument is loaded whole, mutated in memory by the methods below and
written back whole by the repository. The methods raise the error kinds from
``courtside.core.errors``; they never touch storage.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from courtside.core.errors import (
    AlreadyInvitedError,
    AlreadyJoinedError,
    DuplicateCommentError,
    ForbiddenError,
    InvalidInputError,
    NotJoinedError,
)
from courtside.core.utils import as_utc, parse_datetime

DEFAULT_EVENT_TYPE = "pickleball"
DEFAULT_WEATHER = "N/A"
COMMENT_MAX_LENGTH = 1000

# also used as the column widths in courtside.db.models
FIELD_MAX_LENGTHS = {
    "time": 32,
    "event_type": 64,
    "address": 255,
    "weather": 64,
}
_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)

MUTABLE_FIELDS = (
    "date",
    "time",
    "event_type",
    "is_public",
    "fees",
    "is_indoor",
    "address",
    "weather",
)


@dataclass(frozen=True)
class Comment:
    author_id: str
    username: str
    text: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "author_id": self.author_id,
            "username": self.username,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Comment":
        return cls(
            author_id=str(data.get("author_id") or ""),
            username=str(data.get("username") or ""),
            text=str(data.get("text") or ""),
            created_at=parse_datetime(data.get("created_at")) or _EPOCH,
        )


@dataclass
class EventDocument:
    id: str
    date: datetime
    time: str
    address: str
    created_by: str
    event_type: str = DEFAULT_EVENT_TYPE
    is_public: bool = True
    fees: float = 0
    is_indoor: bool = False
    weather: str = DEFAULT_WEATHER
    invited_players: list[str] = field(default_factory=list)
    joined_players: list[str] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    notification_sent: bool = False
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_time: Optional[str] = None

    # -------------------------------------- queries --------------------------------------
    def is_creator(self, user_id: str) -> bool:
        return self.created_by == user_id

    def involves(self, user_id: str) -> bool:
        """True when the user created, joined or was invited to the event."""
        return (
            self.created_by == user_id
            or user_id in self.joined_players
            or user_id in self.invited_players
        )

    def is_visible_to(self, user_id: str) -> bool:
        return self.is_public or self.involves(user_id)

    def has_comments_by(self, author_id: str) -> bool:
        return any(c.author_id == author_id for c in self.comments)

    # -------------------------------------- membership --------------------------------------
    def touch(self, now: datetime) -> None:
        self.updated_at = now
        self.updated_time = now.strftime("%H:%M:%S")

    def join(self, user_id: str, now: datetime) -> None:
        if not self.is_public and user_id not in self.invited_players and not self.is_creator(user_id):
            raise ForbiddenError("You're not invited to this event.")
        if user_id in self.joined_players:
            raise AlreadyJoinedError("You have already joined this event.")
        self.joined_players.append(user_id)
        self.touch(now)

    def leave(self, user_id: str, now: datetime) -> None:
        if self.is_creator(user_id):
            raise ForbiddenError("The creator cannot leave their own event; delete it instead.")
        if user_id not in self.joined_players:
            raise NotJoinedError("You have not joined this event.")
        self.joined_players = [p for p in self.joined_players if p != user_id]
        self.touch(now)

    def ensure_creator(self, user_id: str, action: str) -> None:
        if not self.is_creator(user_id):
            raise ForbiddenError(f"You are not authorized to {action} this event.")

    def invite(self, invitee_id: str, now: datetime) -> None:
        if invitee_id in self.invited_players:
            raise AlreadyInvitedError("This player has already been invited.")
        self.invited_players.append(invitee_id)
        self.touch(now)

    def apply_patch(self, patch: Mapping[str, Any], now: datetime) -> list[str]:
        """
        Apply the known mutable fields of ``patch``; returns the changed names.

        ``None`` values leave the field as it is.
        """
        known = {key: patch[key] for key in MUTABLE_FIELDS if patch.get(key) is not None}
        merged = {name: getattr(self, name) for name in MUTABLE_FIELDS}
        merged.update(known)
        cleaned = validate_event_fields(merged)
        changed = []
        for name, value in cleaned.items():
            if getattr(self, name) != value:
                setattr(self, name, value)
                changed.append(name)
        self.touch(now)
        return changed

    # -------------------------------------- comments --------------------------------------
    def add_comment(self, author_id: str, username: str, text: str, now: datetime) -> Comment:
        body = (text or "").strip()
        if not body:
            raise InvalidInputError("Comment text is required.")
        if len(body) > COMMENT_MAX_LENGTH:
            raise InvalidInputError(f"Comment must be at most {COMMENT_MAX_LENGTH} characters.")
        if any(c.username == username and c.text == body for c in self.comments):
            raise DuplicateCommentError("Duplicate comment not allowed.")
        comment = Comment(author_id=author_id, username=username, text=body, created_at=now)
        self.comments.append(comment)
        return comment

    def strip_comments_by(self, author_id: str) -> int:
        before = len(self.comments)
        self.comments = [c for c in self.comments if c.author_id != author_id]
        return before - len(self.comments)

    def remove_references(self, user_id: str) -> None:
        """Drop the user from both player lists and strip their comments."""
        self.invited_players = [p for p in self.invited_players if p != user_id]
        self.joined_players = [p for p in self.joined_players if p != user_id]
        self.strip_comments_by(user_id)


def _require_text(data: Mapping[str, Any], name: str, label: str) -> str:
    value = data.get(name)
    text = str(value).strip() if value is not None else ""
    if not text:
        raise InvalidInputError(f"{label} is required.")
    return text


def _check_length(value: str, name: str, label: str) -> str:
    limit = FIELD_MAX_LENGTHS[name]
    if len(value) > limit:
        raise InvalidInputError(f"{label} must be at most {limit} characters.")
    return value


def validate_event_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Check and normalize the user-supplied fields of an event.

    ``date``, ``time`` and ``address`` are required; ``date`` must parse to a
    point in time. Missing optional fields take their defaults. Text fields
    are capped at the widths in FIELD_MAX_LENGTHS.
    """
    raw_date = data.get("date")
    if raw_date is None or (isinstance(raw_date, str) and not raw_date.strip()):
        raise InvalidInputError("Date is required.")
    when = parse_datetime(raw_date)
    if when is None:
        raise InvalidInputError("Date must be a valid ISO-8601 timestamp.")
    time_value = _check_length(_require_text(data, "time", "Time"), "time", "Time")
    address = _check_length(_require_text(data, "address", "Address"), "address", "Address")

    fees = data.get("fees")
    try:
        fees_value = float(fees) if fees is not None else 0.0
    except (TypeError, ValueError):
        raise InvalidInputError("Fees must be a number.")
    if not math.isfinite(fees_value):
        raise InvalidInputError("Fees must be a finite number.")
    if fees_value < 0:
        raise InvalidInputError("Fees cannot be negative.")

    event_type = str(data.get("event_type") or "").strip() or DEFAULT_EVENT_TYPE
    weather = str(data.get("weather") or "").strip() or DEFAULT_WEATHER
    is_public = data.get("is_public")
    is_indoor = data.get("is_indoor")
    return {
        "date": as_utc(when),
        "time": time_value,
        "event_type": _check_length(event_type, "event_type", "Event type"),
        "is_public": True if is_public is None else bool(is_public),
        "fees": fees_value,
        "is_indoor": False if is_indoor is None else bool(is_indoor),
        "address": address,
        "weather": _check_length(weather, "weather", "Weather"),
    }
