"""SQLAlchemy models for users and event aggregates."""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    JSON,
    func,
)

from courtside.domain.events import DEFAULT_EVENT_TYPE, DEFAULT_WEATHER, FIELD_MAX_LENGTHS

from .session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    username = Column(String(64), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    reset_token = Column(String(255), nullable=True, unique=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (Index("ix_users_username_lower", func.lower(username), unique=True),)


class Event(Base):
    """
    One row per event aggregate.

    Membership lists hold user ids; comments are embedded documents
    ({author_id, username, text, created_at}) kept in insertion order.
    """

    __tablename__ = "events"

    id = Column(String(32), primary_key=True)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    time = Column(String(FIELD_MAX_LENGTHS["time"]), nullable=False)
    event_type = Column(String(FIELD_MAX_LENGTHS["event_type"]), default=DEFAULT_EVENT_TYPE, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    fees = Column(Float, default=0, nullable=False)
    is_indoor = Column(Boolean, default=False, nullable=False)
    address = Column(String(FIELD_MAX_LENGTHS["address"]), nullable=False)
    weather = Column(String(FIELD_MAX_LENGTHS["weather"]), default=DEFAULT_WEATHER, nullable=False)
    created_by = Column(String(32), nullable=False, index=True)
    invited_players = Column(JSON, default=list, nullable=False)
    joined_players = Column(JSON, default=list, nullable=False)
    comments = Column(JSON, default=list, nullable=False)
    notification_sent = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_time = Column(String(8), nullable=True)
