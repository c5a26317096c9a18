from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from specyf.models import Guest, Poll, PollResponse, User
from specyf.realtime import publish_event_update
from specyf.services.access import coerce_uuid, get_managed_event
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def clean_options(options: list[str]) -> list[str]:
    cleaned: list[str] = []
    for option in options:
        value = option.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    if len(cleaned) < 2:
        raise ValidationError(ErrorCode.POLL_INVALID_OPTIONS.value, "a poll needs at least two distinct options")
    return cleaned


def _get_poll(db: Session, event_id: Any, poll_id: Any) -> Poll:
    key = coerce_uuid(poll_id)
    poll = db.get(Poll, key) if key else None
    if poll is None or poll.event_id != event_id:
        raise NotFoundError(ErrorCode.POLL_NOT_FOUND.value, "poll not found")
    return poll


def _tallies(db: Session, polls: list[Poll]) -> dict[Any, dict[str, int]]:
    counts: dict[Any, dict[str, int]] = {poll.id: {} for poll in polls}
    if not polls:
        return counts
    rows = db.execute(
        select(PollResponse.poll_id, PollResponse.selected_option, func.count())
        .where(PollResponse.poll_id.in_(list(counts)))
        .group_by(PollResponse.poll_id, PollResponse.selected_option)
    ).all()
    for poll_id, option, count in rows:
        counts[poll_id][option] = int(count)
    return counts


def _poll_view(poll: Poll, tally: dict[str, int], my_choice: str | None = None) -> dict[str, Any]:
    return {
        "id": poll.id,
        "event_id": poll.event_id,
        "question": poll.question,
        "options": list(poll.options),
        "is_active": poll.is_active,
        "created_at": poll.created_at,
        "tallies": [{"option": option, "votes": tally.get(option, 0)} for option in poll.options],
        "total_votes": sum(tally.values()),
        "my_choice": my_choice,
    }


def create_poll(db: Session, user: User, event_id: Any, question: str, options: list[str]) -> dict[str, Any]:
    event = get_managed_event(db, user, event_id)
    question = question.strip()
    if not question:
        raise ValidationError(ErrorCode.POLL_INVALID_OPTIONS.value, "question is required")

    poll = Poll(event_id=event.id, question=question, options=clean_options(options), is_active=True)
    db.add(poll)
    db.commit()
    db.refresh(poll)

    logger.info("poll_created", event_id=str(event.id), poll_id=str(poll.id))
    publish_event_update(event.id, "poll_created", {"poll_id": str(poll.id)})
    return _poll_view(poll, {})


def list_polls(db: Session, user: User, event_id: Any) -> list[dict[str, Any]]:
    event = get_managed_event(db, user, event_id)
    polls = list(db.scalars(select(Poll).where(Poll.event_id == event.id).order_by(Poll.created_at)).all())
    tallies = _tallies(db, polls)
    return [_poll_view(poll, tallies[poll.id]) for poll in polls]


def set_poll_active(db: Session, user: User, event_id: Any, poll_id: Any, is_active: bool) -> dict[str, Any]:
    event = get_managed_event(db, user, event_id)
    poll = _get_poll(db, event.id, poll_id)
    poll.is_active = is_active
    db.add(poll)
    db.commit()
    db.refresh(poll)
    return _poll_view(poll, _tallies(db, [poll])[poll.id])


def delete_poll(db: Session, user: User, event_id: Any, poll_id: Any) -> None:
    event = get_managed_event(db, user, event_id)
    poll = _get_poll(db, event.id, poll_id)
    db.execute(PollResponse.__table__.delete().where(PollResponse.poll_id == poll.id))
    db.delete(poll)
    db.commit()


def polls_for_guest(db: Session, guest: Guest) -> list[dict[str, Any]]:
    polls = list(
        db.scalars(
            select(Poll)
            .where(Poll.event_id == guest.event_id, Poll.is_active.is_(True))
            .order_by(Poll.created_at)
        ).all()
    )
    tallies = _tallies(db, polls)
    choices = dict(
        db.execute(
            select(PollResponse.poll_id, PollResponse.selected_option).where(
                PollResponse.guest_id == guest.id,
                PollResponse.poll_id.in_([p.id for p in polls]),
            )
        ).all()
    )
    return [_poll_view(poll, tallies[poll.id], choices.get(poll.id)) for poll in polls]


def answer_poll(db: Session, guest: Guest, poll_id: Any, option: str) -> dict[str, Any]:
    """Record a guest's choice; answering again replaces the earlier choice."""
    poll = _get_poll(db, guest.event_id, poll_id)
    if not poll.is_active:
        raise ConflictError(ErrorCode.POLL_CLOSED.value, "poll is closed")
    option = option.strip()
    if option not in poll.options:
        raise ValidationError(ErrorCode.POLL_INVALID_CHOICE.value, "option is not part of this poll")

    response = db.scalar(
        select(PollResponse).where(PollResponse.poll_id == poll.id, PollResponse.guest_id == guest.id)
    )
    if response is None:
        response = PollResponse(poll_id=poll.id, guest_id=guest.id, selected_option=option)
    else:
        response.selected_option = option
    db.add(response)
    db.commit()

    publish_event_update(guest.event_id, "poll_answered", {"poll_id": str(poll.id)})
    return _poll_view(poll, _tallies(db, [poll])[poll.id], option)
