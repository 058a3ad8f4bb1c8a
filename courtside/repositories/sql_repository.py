"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, ContextManager, Iterator, Optional

from sqlalchemy import delete, select, update, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from courtside.core.errors import (
    AccountExistsError,
    ConcurrentModificationError,
    DependencyFailure,
    NotFoundError,
)
from courtside.core.utils import as_utc
from courtside.db.models import Event, User
from courtside.db.session import get_session
from courtside.domain.events import Comment, EventDocument

logger = logging.getLogger(__name__)

EventPredicate = Callable[[EventDocument], bool]


def new_id() -> str:
    return uuid.uuid4().hex


def _to_document(row: Event) -> EventDocument:
    return EventDocument(
        id=row.id,
        date=as_utc(row.date),
        time=row.time,
        address=row.address,
        created_by=row.created_by,
        event_type=row.event_type,
        is_public=bool(row.is_public),
        fees=float(row.fees or 0),
        is_indoor=bool(row.is_indoor),
        weather=row.weather,
        invited_players=list(row.invited_players or []),
        joined_players=list(row.joined_players or []),
        comments=[Comment.from_dict(c) for c in (row.comments or [])],
        notification_sent=bool(row.notification_sent),
        version=int(row.version or 1),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        updated_time=row.updated_time,
    )


def _document_values(doc: EventDocument) -> dict:
    return {
        "date": as_utc(doc.date),
        "time": doc.time,
        "event_type": doc.event_type,
        "is_public": doc.is_public,
        "fees": doc.fees,
        "is_indoor": doc.is_indoor,
        "address": doc.address,
        "weather": doc.weather,
        "created_by": doc.created_by,
        "invited_players": list(doc.invited_players),
        "joined_players": list(doc.joined_players),
        "comments": [c.to_dict() for c in doc.comments],
        "notification_sent": doc.notification_sent,
        "updated_at": doc.updated_at or datetime.now(timezone.utc),
        "updated_time": doc.updated_time,
    }


class SQLRepository:
    """Identity and event-aggregate store wrapping the SQLAlchemy session."""

    def __init__(self, session_factory: Optional[Callable[[], ContextManager[Session]]] = None) -> None:
        self._session_factory = session_factory or get_session

    @contextmanager
    def _session(self, *, raise_integrity: bool = False) -> Iterator[Session]:
        """
        Yield a session, turning store failures into DependencyFailure.

        With ``raise_integrity`` constraint violations propagate unchanged so
        the caller can map them to a domain error.
        """
        try:
            with self._session_factory() as session:
                yield session
        except IntegrityError as exc:
            if raise_integrity:
                raise
            logger.error("Constraint violation on write: %s", exc)
            raise DependencyFailure("The data store rejected the write.") from exc
        except SQLAlchemyError as exc:
            logger.error("Database operation failed: %s", exc)
            raise DependencyFailure("The data store is unavailable.") from exc

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        with self._session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        value = (email or "").strip().lower()
        if not value:
            return None
        with self._session() as session:
            stmt = select(User).where(User.email == value)
            return session.execute(stmt).scalar_one_or_none()

    def get_user_by_username(self, username: str) -> Optional[User]:
        value = (username or "").strip().lower()
        if not value:
            return None
        with self._session() as session:
            stmt = select(User).where(func.lower(User.username) == value)
            return session.execute(stmt).scalar_one_or_none()

    def get_user_by_reset_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        with self._session() as session:
            stmt = select(User).where(User.reset_token == token)
            return session.execute(stmt).scalar_one_or_none()

    def find_user(self, identifier: str) -> Optional[User]:
        """Look a user up by id, then username, then email."""
        value = (identifier or "").strip()
        return self.get_user(value) or self.get_user_by_username(value) or self.get_user_by_email(value)

    def create_user(self, username: str, email: str, password_hash: str, *, is_admin: bool = False) -> User:
        now = datetime.now(timezone.utc)
        user = User(
            id=new_id(),
            username=username,
            email=email.strip().lower(),
            password_hash=password_hash,
            is_admin=is_admin,
            created_at=now,
            updated_at=now,
        )
        try:
            with self._session(raise_integrity=True) as session:
                session.add(user)
                session.commit()
                return user
        except IntegrityError as exc:
            raise AccountExistsError("An account with this email or username already exists.") from exc

    def update_user_password(self, user_id: str, password_hash: str) -> None:
        with self._session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    def set_reset_token(self, user_id: str, token: str, expires_at: datetime) -> None:
        with self._session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(reset_token=token, reset_token_expires_at=expires_at, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    def clear_reset_token(self, user_id: str) -> None:
        with self._session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(reset_token=None, reset_token_expires_at=None, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    def set_user_admin(self, user_id: str, is_admin: bool) -> bool:
        with self._session() as session:
            result = session.execute(update(User).where(User.id == user_id).values(is_admin=is_admin))
            session.commit()
            return result.rowcount > 0

    def delete_user(self, user_id: str) -> bool:
        with self._session() as session:
            result = session.execute(delete(User).where(User.id == user_id))
            session.commit()
            return result.rowcount > 0

    # -------------------------- events --------------------------
    def get_event(self, event_id: str) -> Optional[EventDocument]:
        if not event_id:
            return None
        with self._session() as session:
            row = session.get(Event, event_id)
            return _to_document(row) if row else None

    def event_exists(self, *, date: datetime, event_type: str, address: str, created_by: str) -> bool:
        with self._session() as session:
            stmt = (
                select(Event.id)
                .where(
                    Event.date == as_utc(date),
                    Event.event_type == event_type,
                    Event.address == address,
                    Event.created_by == created_by,
                )
                .limit(1)
            )
            return session.execute(stmt).first() is not None

    def create_event(self, doc: EventDocument) -> EventDocument:
        now = datetime.now(timezone.utc)
        doc.id = doc.id or new_id()
        doc.version = 1
        doc.created_at = doc.created_at or now
        doc.updated_at = doc.updated_at or now
        row = Event(id=doc.id, version=1, created_at=doc.created_at, **_document_values(doc))
        with self._session() as session:
            session.add(row)
            session.commit()
        return doc

    def save_event(self, doc: EventDocument, expected_version: int) -> EventDocument:
        """
        Write the whole aggregate back if nobody else wrote it since it was loaded.

        Raises ConcurrentModificationError when ``expected_version`` is stale and
        NotFoundError when the event was deleted in the meantime.
        """
        values = _document_values(doc)
        with self._session() as session:
            stmt = (
                update(Event)
                .where(Event.id == doc.id, Event.version == expected_version)
                .values(version=expected_version + 1, **values)
            )
            result = session.execute(stmt)
            session.commit()
            if result.rowcount == 0:
                if session.get(Event, doc.id) is None:
                    raise NotFoundError("Event not found.")
                raise ConcurrentModificationError("The event was modified concurrently. Please retry.")
        doc.version = expected_version + 1
        return doc

    def update_event(
        self,
        event_id: str,
        mutator: Callable[[EventDocument], object],
        *,
        retries: int = 3,
    ) -> EventDocument:
        """
        Load, mutate and conditionally save one aggregate, reloading on version conflicts.

        Errors raised by ``mutator`` propagate unchanged and nothing is written.
        """
        attempts = max(1, retries)
        for attempt in range(1, attempts + 1):
            doc = self.get_event(event_id)
            if doc is None:
                raise NotFoundError("Event not found.")
            mutator(doc)
            try:
                return self.save_event(doc, expected_version=doc.version)
            except ConcurrentModificationError:
                if attempt == attempts:
                    raise
                logger.warning("Version conflict on event %s (attempt %d/%d); retrying", event_id, attempt, attempts)
        raise ConcurrentModificationError("The event was modified concurrently. Please retry.")

    def purge_if_user_deleted(self, event_id: str, user_id: str, *, retries: int = 3) -> bool:
        """
        Check that ``user_id`` still exists after a write that referenced it.

        When the account was deleted while the write was in flight, its id and
        comments are removed from the event again and True is returned.
        """
        if self.get_user(user_id) is not None:
            return False
        logger.warning("User %s was deleted during a write to event %s; removing references", user_id, event_id)
        try:
            self.update_event(event_id, lambda doc: doc.remove_references(user_id), retries=retries)
        except NotFoundError:
            # event already deleted
            pass
        return True

    def find_events(
        self,
        predicate: Optional[EventPredicate] = None,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        created_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[EventDocument]:
        """
        Return events ordered by date, filtered by the optional date window
        (``start`` inclusive, ``end`` exclusive), creator and predicate.
        """
        stmt = select(Event)
        if start is not None:
            stmt = stmt.where(Event.date >= as_utc(start))
        if end is not None:
            stmt = stmt.where(Event.date < as_utc(end))
        if created_by is not None:
            stmt = stmt.where(Event.created_by == created_by)
        order = Event.date.desc() if descending else Event.date.asc()
        stmt = stmt.order_by(order, Event.created_at.asc())
        with self._session() as session:
            docs = [_to_document(row) for row in session.execute(stmt).scalars().all()]
        if predicate is None:
            return docs
        return [doc for doc in docs if predicate(doc)]

    def delete_event(self, event_id: str) -> bool:
        with self._session() as session:
            result = session.execute(delete(Event).where(Event.id == event_id))
            session.commit()
            return result.rowcount > 0

    def delete_events_where(self, predicate: EventPredicate) -> int:
        ids = [doc.id for doc in self.find_events(predicate)]
        if not ids:
            return 0
        with self._session() as session:
            result = session.execute(delete(Event).where(Event.id.in_(ids)))
            session.commit()
            return result.rowcount
