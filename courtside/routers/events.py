from __future__ import annotations

from fastapi import APIRouter, Depends

from courtside.db.models import User
from courtside.routers.dependencies import (
    current_user,
    get_comment_service,
    get_event_service,
)
from courtside.schemas import (
    CommentOut,
    CommentRequest,
    EventFields,
    EventOut,
    InviteRequest,
    InviteResponse,
    MessageResponse,
)
from courtside.services.comment_service import CommentService
from courtside.services.event_service import EventService

router = APIRouter(prefix="/api/event", tags=["event"])


def _many(docs) -> list[EventOut]:
    return [EventOut.from_document(doc) for doc in docs]


@router.post("/create", response_model=EventOut, status_code=201)
def create_event(body: EventFields, user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    doc = events.create(body.model_dump(exclude_none=True), user.id)
    return EventOut.from_document(doc)


@router.get("/upcoming", response_model=list[EventOut])
def upcoming(user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    return _many(events.list_upcoming(user.id))


@router.get("/created", response_model=list[EventOut])
def created_by_me(user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    return _many(events.list_created(user.id))


@router.get("/joined", response_model=list[EventOut])
def joined(user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    return _many(events.list_joined(user.id))


@router.get("/invited", response_model=list[EventOut])
def invited(user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    return _many(events.list_invited(user.id))


@router.get("/history", response_model=list[EventOut])
def history(user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    return _many(events.list_history(user.id))


@router.put("/edit/{event_id}", response_model=EventOut)
def edit_event(
    event_id: str,
    body: EventFields,
    user: User = Depends(current_user),
    events: EventService = Depends(get_event_service),
):
    doc = events.edit(event_id, user.id, body.model_dump(exclude_unset=True, exclude_none=True))
    return EventOut.from_document(doc)


@router.post("/join/{event_id}", response_model=EventOut)
def join_event(event_id: str, user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    return EventOut.from_document(events.join(event_id, user.id))


@router.post("/leave/{event_id}", response_model=EventOut)
def leave_event(event_id: str, user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    return EventOut.from_document(events.leave(event_id, user.id))


@router.post("/invite/{event_id}", response_model=InviteResponse)
def invite_player(
    event_id: str,
    body: InviteRequest,
    user: User = Depends(current_user),
    events: EventService = Depends(get_event_service),
):
    result = events.invite(event_id, user.id, body.user)
    return InviteResponse(
        event=EventOut.from_document(result.event),
        invitee_id=result.invitee_id,
        email_sent=result.email_sent,
    )


@router.post("/comment/{event_id}", response_model=EventOut)
def add_comment(
    event_id: str,
    body: CommentRequest,
    user: User = Depends(current_user),
    comments: CommentService = Depends(get_comment_service),
):
    return EventOut.from_document(comments.add_comment(event_id, user.id, body.text))


@router.get("/comments/{event_id}", response_model=list[CommentOut])
def list_comments(
    event_id: str,
    user: User = Depends(current_user),
    comments: CommentService = Depends(get_comment_service),
):
    return [CommentOut.from_comment(c) for c in comments.list_comments(event_id, user.id)]


@router.delete("/delete/{event_id}", response_model=MessageResponse)
def delete_event(event_id: str, user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    events.delete(event_id, user.id)
    return MessageResponse(message="Event successfully deleted.")


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, user: User = Depends(current_user), events: EventService = Depends(get_event_service)):
    return EventOut.from_document(events.get(event_id, user.id))
