from __future__ import annotations

import pytest

from courtside.core.errors import DependencyFailure, DuplicateCommentError, ForbiddenError, NotFoundError
from courtside.services.account_service import AccountService
from courtside.services.comment_service import CommentService
from courtside.services.event_service import EventService

PAYLOAD = {"date": "2099-01-01T10:00:00Z", "time": "10:00", "address": "Court 1"}


@pytest.fixture()
def services(repo, mailbox):
    return (
        EventService(repository=repo, mailer=mailbox),
        CommentService(repository=repo),
        AccountService(repository=repo),
    )


def _references(repo, user_id):
    return repo.find_events(lambda d: d.involves(user_id) or d.has_comments_by(user_id))


def test_only_self_or_admin_may_delete(services, make_user, repo):
    _, _, accounts = services
    alice, bob = make_user("alice"), make_user("bob")

    with pytest.raises(ForbiddenError):
        accounts.delete_user(alice.id, bob.id, False)
    assert repo.get_user(alice.id) is not None

    report = accounts.delete_user(alice.id, bob.id, True)
    assert report.user_id == alice.id
    assert repo.get_user(alice.id) is None


def test_cascade_strips_comments_and_deletes_related_events(services, make_user, repo):
    events, comments, accounts = services
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")

    created = events.create(PAYLOAD, bob.id)
    joined = events.create({**PAYLOAD, "address": "Court 2"}, alice.id)
    events.join(joined.id, bob.id)
    invited = events.create({**PAYLOAD, "address": "Court 3"}, alice.id)
    events.invite(invited.id, alice.id, bob.id)
    unrelated = events.create({**PAYLOAD, "address": "Court 4"}, carol.id)
    comments.add_comment(unrelated.id, bob.id, "count me in")
    comments.add_comment(unrelated.id, alice.id, "me too")
    comments.add_comment(created.id, alice.id, "nice court")

    report = accounts.delete_user(bob.id, bob.id, False)

    assert report.events_deleted == 3
    assert report.comments_removed == 1
    assert repo.get_user(bob.id) is None
    for gone in (created, joined, invited):
        assert repo.get_event(gone.id) is None
    survivor = repo.get_event(unrelated.id)
    assert [c.username for c in survivor.comments] == ["alice"]
    assert _references(repo, bob.id) == []


def test_second_delete_is_not_found_without_side_effects(services, make_user, repo):
    events, comments, accounts = services
    alice, bob = make_user("alice"), make_user("bob")
    keep = events.create(PAYLOAD, alice.id)
    comments.add_comment(keep.id, alice.id, "hello")
    accounts.delete_user(bob.id, bob.id)
    before = repo.get_event(keep.id)

    with pytest.raises(NotFoundError):
        accounts.delete_user(bob.id, bob.id)

    after = repo.get_event(keep.id)
    assert after.version == before.version
    assert after.comments == before.comments


def test_retry_after_partial_failure_converges(services, make_user, repo, monkeypatch):
    events, comments, accounts = services
    alice, bob = make_user("alice"), make_user("bob")
    theirs = events.create(PAYLOAD, alice.id)
    comments.add_comment(theirs.id, bob.id, "on my way")
    mine = events.create({**PAYLOAD, "address": "Court 2"}, bob.id)

    original_delete_user = repo.delete_user

    def failing_delete_user(user_id):
        raise DependencyFailure("The data store is unavailable.")

    monkeypatch.setattr(repo, "delete_user", failing_delete_user)
    with pytest.raises(DependencyFailure):
        accounts.delete_user(bob.id, bob.id)

    # steps 1 and 2 already ran
    assert repo.get_event(theirs.id).comments == []
    assert repo.get_event(mine.id) is None
    assert repo.get_user(bob.id) is not None

    monkeypatch.setattr(repo, "delete_user", original_delete_user)
    report = accounts.delete_user(bob.id, bob.id)

    assert report.comments_removed == 0
    assert report.events_deleted == 0
    assert repo.get_user(bob.id) is None
    assert _references(repo, bob.id) == []


def test_scenario_create_join_comment_leave_delete(services, make_user, repo):
    events, comments, accounts = services
    a, b = make_user("A"), make_user("B")

    e = events.create(
        {
            "date": "2099-01-01T10:00:00Z",
            "time": "10:00",
            "event_type": "pickleball",
            "address": "Court 1",
            "is_public": True,
        },
        a.id,
    )
    assert events.join(e.id, b.id).joined_players == [a.id, b.id]

    doc = comments.add_comment(e.id, b.id, "great game")
    assert [(c.username, c.text) for c in doc.comments] == [("B", "great game")]
    with pytest.raises(DuplicateCommentError) as exc_info:
        comments.add_comment(e.id, b.id, "great game")
    assert exc_info.value.code == "DuplicateComment"

    assert events.leave(e.id, b.id).joined_players == [a.id]

    accounts.delete_user(a.id, a.id, False)
    assert repo.get_event(e.id) is None
