"""
Account deletion with cascade over the event collection.

Order matters: comments authored by the user are stripped first, then every
event the user created, joined or was invited to is removed, and only then
the user record itself. Each step is idempotent, so re-running a deletion
that failed half way converges to a state with no event referencing the user.
Comments are matched on the author's user id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from courtside.core.config import Settings, get_settings
from courtside.core.errors import ForbiddenError, NotFoundError
from courtside.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)


@dataclass
class DeletionReport:
    user_id: str
    comments_removed: int
    events_deleted: int


@dataclass
class AccountService:
    repository: SQLRepository = field(default_factory=SQLRepository)
    settings: Settings = field(default_factory=get_settings)

    def _strip_comments(self, user_id: str) -> int:
        removed = 0
        for doc in self.repository.find_events(lambda d: d.has_comments_by(user_id)):
            counts: list[int] = []
            try:
                self.repository.update_event(
                    doc.id,
                    lambda d: counts.append(d.strip_comments_by(user_id)),
                    retries=self.settings.event_write_retries,
                )
            except NotFoundError:
                # deleted between the scan and the write; nothing left to strip
                continue
            removed += counts[-1]
        return removed

    def _sweep(self, user_id: str) -> tuple[int, int]:
        comments_removed = self._strip_comments(user_id)
        events_deleted = self.repository.delete_events_where(lambda d: d.involves(user_id))
        return comments_removed, events_deleted

    def delete_user(self, target_user_id: str, requester_id: str, requester_is_admin: bool = False) -> DeletionReport:
        if requester_id != target_user_id and not requester_is_admin:
            raise ForbiddenError("You are not allowed to delete this account.")

        comments_removed, events_deleted = self._sweep(target_user_id)
        if not self.repository.delete_user(target_user_id):
            raise NotFoundError("User not found.")
        # catches events that referenced the user while the first sweep ran
        late_comments, late_events = self._sweep(target_user_id)
        if late_comments or late_events:
            logger.warning("Late references to user %s removed after deletion", target_user_id)
        logger.info(
            "User %s deleted by %s: %d comments stripped, %d events deleted",
            target_user_id,
            requester_id,
            comments_removed + late_comments,
            events_deleted + late_events,
        )
        return DeletionReport(
            user_id=target_user_id,
            comments_removed=comments_removed + late_comments,
            events_deleted=events_deleted + late_events,
        )
