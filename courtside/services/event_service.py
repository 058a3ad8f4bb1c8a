"""
Event membership use cases: create, edit, delete, join, leave, invite, listings.

Every write to an existing event goes through SQLRepository.update_event, which
re-applies the rule on a fresh copy when another request saved the event first.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from courtside.core.config import Settings, get_settings
from courtside.core.errors import (
    DeliveryError,
    DuplicateEventError,
    ForbiddenError,
    NotFoundError,
)
from courtside.core.mailer import send_email
from courtside.core.utils import absolute_url, utcnow
from courtside.domain.events import EventDocument, validate_event_fields
from courtside.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)


@dataclass
class InviteResult:
    event: EventDocument
    invitee_id: str
    email_sent: bool


@dataclass
class EventService:
    """Applies the membership rules of a single event aggregate."""

    repository: SQLRepository = field(default_factory=SQLRepository)
    mailer: Callable[..., None] = send_email
    clock: Callable[[], datetime] = utcnow
    settings: Settings = field(default_factory=get_settings)

    # -------------------------------------- helpers --------------------------------------
    def _load(self, event_id: str) -> EventDocument:
        doc = self.repository.get_event(event_id)
        if doc is None:
            raise NotFoundError("Event not found.")
        return doc

    def _mutate(self, event_id: str, rule: Callable[[EventDocument], object]) -> EventDocument:
        return self.repository.update_event(event_id, rule, retries=self.settings.event_write_retries)

    def _invite_email_html(self, event: EventDocument, inviter_name: str, event_url: str) -> str:
        when = event.date.strftime("%Y-%m-%d")
        return f"""
        <p>Hi!</p>
        <p><b>{html.escape(inviter_name)}</b> invited you to a {html.escape(event.event_type)} game
        on {when} at {html.escape(event.time)}.</p>
        <p>Where: {html.escape(event.address)}</p>
        <p><a href="{event_url}">See the event and join</a></p>
        """

    # -------------------------------------- lifecycle --------------------------------------
    def create(self, payload: Mapping[str, Any], creator_id: str) -> EventDocument:
        fields = validate_event_fields(payload)
        if self.repository.get_user(creator_id) is None:
            raise NotFoundError("User not found.")
        if self.repository.event_exists(
            date=fields["date"],
            event_type=fields["event_type"],
            address=fields["address"],
            created_by=creator_id,
        ):
            raise DuplicateEventError("You already created this event.")
        now = self.clock()
        doc = EventDocument(
            id="",
            created_by=creator_id,
            joined_players=[creator_id],
            created_at=now,
            updated_at=now,
            updated_time=now.strftime("%H:%M:%S"),
            **fields,
        )
        doc = self.repository.create_event(doc)
        if self.repository.get_user(creator_id) is None:
            # the account was deleted while the event was being stored
            self.repository.delete_event(doc.id)
            raise NotFoundError("User not found.")
        logger.info("Event %s created by %s", doc.id, creator_id)
        return doc

    def edit(self, event_id: str, editor_id: str, patch: Mapping[str, Any]) -> EventDocument:
        now = self.clock()

        def rule(doc: EventDocument) -> None:
            doc.ensure_creator(editor_id, "edit")
            doc.apply_patch(patch, now)

        return self._mutate(event_id, rule)

    def delete(self, event_id: str, requester_id: str) -> None:
        doc = self._load(event_id)
        doc.ensure_creator(requester_id, "delete")
        self.repository.delete_event(event_id)
        logger.info("Event %s deleted by %s", event_id, requester_id)

    def get(self, event_id: str, viewer_id: str) -> EventDocument:
        doc = self._load(event_id)
        if not doc.is_visible_to(viewer_id):
            raise ForbiddenError("This event is private.")
        return doc

    # -------------------------------------- membership --------------------------------------
    def _purge_if_user_deleted(self, event_id: str, user_id: str, message: str) -> None:
        if self.repository.purge_if_user_deleted(event_id, user_id, retries=self.settings.event_write_retries):
            raise NotFoundError(message)

    def join(self, event_id: str, user_id: str) -> EventDocument:
        now = self.clock()
        doc = self._mutate(event_id, lambda d: d.join(user_id, now))
        self._purge_if_user_deleted(event_id, user_id, "User not found.")
        return doc

    def leave(self, event_id: str, user_id: str) -> EventDocument:
        now = self.clock()
        return self._mutate(event_id, lambda doc: doc.leave(user_id, now))

    def invite(self, event_id: str, inviter_id: str, invitee: str) -> InviteResult:
        """
        Invite a player identified by user id, username or email.

        The invitee is looked up only after the inviter is confirmed as the
        creator; a non-creator gets Forbidden whether or not the account exists.
        """
        now = self.clock()
        target = None

        def rule(doc: EventDocument) -> None:
            nonlocal target
            doc.ensure_creator(inviter_id, "invite players to")
            target = self.repository.find_user(invitee)
            if target is None:
                raise NotFoundError("Invited user not found.")
            doc.invite(target.id, now)

        doc = self._mutate(event_id, rule)
        self._purge_if_user_deleted(event_id, target.id, "Invited user not found.")
        inviter = self.repository.get_user(inviter_id)
        inviter_name = inviter.username if inviter else "A player"
        event_url = absolute_url(f"/events/{doc.id}")
        email_sent = True
        try:
            self.mailer(
                "You're invited to a pickleball game",
                target.email,
                self._invite_email_html(doc, inviter_name, event_url),
                f"{inviter_name} invited you to a game on {doc.date:%Y-%m-%d} at {doc.time}: {event_url}",
            )
        except DeliveryError as exc:
            email_sent = False
            logger.warning("Invite to event %s stored but email to %s failed: %s", doc.id, target.id, exc.message)
        return InviteResult(event=doc, invitee_id=target.id, email_sent=email_sent)

    # -------------------------------------- listings --------------------------------------
    def list_upcoming(self, user_id: str, now: Optional[datetime] = None) -> list[EventDocument]:
        return self.repository.find_events(lambda doc: doc.is_visible_to(user_id), start=now or self.clock())

    def list_created(self, user_id: str, now: Optional[datetime] = None) -> list[EventDocument]:
        return self.repository.find_events(start=now or self.clock(), created_by=user_id)

    def list_joined(self, user_id: str, now: Optional[datetime] = None) -> list[EventDocument]:
        return self.repository.find_events(lambda doc: user_id in doc.joined_players, start=now or self.clock())

    def list_invited(self, user_id: str, now: Optional[datetime] = None) -> list[EventDocument]:
        return self.repository.find_events(
            lambda doc: user_id in doc.invited_players and user_id not in doc.joined_players,
            start=now or self.clock(),
        )

    def list_history(self, user_id: str, now: Optional[datetime] = None) -> list[EventDocument]:
        return self.repository.find_events(
            lambda doc: doc.is_creator(user_id) or user_id in doc.joined_players,
            end=now or self.clock(),
            descending=True,
        )
