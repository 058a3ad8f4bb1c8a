"""Comment use cases. Comments are append-only; there is no edit or delete path."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from courtside.core.config import Settings, get_settings
from courtside.core.errors import ForbiddenError, NotFoundError
from courtside.core.utils import utcnow
from courtside.domain.events import Comment, EventDocument
from courtside.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)


@dataclass
class CommentService:
    repository: SQLRepository = field(default_factory=SQLRepository)
    clock: Callable[[], datetime] = utcnow
    settings: Settings = field(default_factory=get_settings)

    def add_comment(self, event_id: str, user_id: str, text: str) -> EventDocument:
        now = self.clock()

        def rule(doc: EventDocument) -> None:
            author = self.repository.get_user(user_id)
            if author is None:
                raise NotFoundError("User not found.")
            doc.add_comment(author.id, author.username, text, now)

        doc = self.repository.update_event(event_id, rule, retries=self.settings.event_write_retries)
        if self.repository.purge_if_user_deleted(event_id, user_id, retries=self.settings.event_write_retries):
            raise NotFoundError("User not found.")
        logger.debug("Comment added to event %s by %s", event_id, user_id)
        return doc

    def list_comments(self, event_id: str, viewer_id: str) -> list[Comment]:
        doc = self.repository.get_event(event_id)
        if doc is None:
            raise NotFoundError("Event not found.")
        if not doc.is_visible_to(viewer_id):
            raise ForbiddenError("This event is private.")
        return list(doc.comments)
