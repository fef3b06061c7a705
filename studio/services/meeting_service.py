"""
Meeting Service.

Meetings invite a set of participants on creation.  Confidential meetings are
visible only to their creator, their participants and super_admin.  Status
changes (scheduled → completed / cancelled) go through the status gate;
participants answer their own invitation with ``respond_to_meeting``.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import or_, select

from studio.core.exceptions import NotFoundError, ValidationError
from studio.models import db
from studio.models.auth import User
from studio.models.meeting import (
    MEETING_MODES,
    PARTICIPANT_RESPONSES,
    Meeting,
    MeetingParticipant,
)
from studio.services.permission import PermissionDenied, has_any_role
from studio.services.status_gate import can_transition, change_labels
from studio.utils.helpers import get_or_raise

logger = logging.getLogger(__name__)

CONFIDENTIAL_READERS = frozenset({"super_admin"})


def _visible_to(meeting: Meeting, actor_id: int | None) -> bool:
    if not meeting.is_confidential:
        return True
    if meeting.created_by == actor_id:
        return True
    if meeting.participants.filter_by(user_id=actor_id).first() is not None:
        return True
    return has_any_role(actor_id, CONFIDENTIAL_READERS)


def _get_visible(meeting_id: int, actor_id: int | None) -> Meeting:
    meeting = get_or_raise(Meeting, meeting_id, label="Meeting")
    if not _visible_to(meeting, actor_id):
        # hidden meetings are indistinguishable from missing ones
        raise NotFoundError(resource="Meeting", resource_id=meeting_id)
    return meeting


def list_meetings(actor_id: int | None) -> list[dict]:
    stmt = select(Meeting).order_by(Meeting.meeting_date.desc(), Meeting.id.desc())
    if not has_any_role(actor_id, CONFIDENTIAL_READERS):
        invited = select(MeetingParticipant.meeting_id).where(
            MeetingParticipant.user_id == actor_id
        )
        stmt = stmt.where(
            or_(
                Meeting.is_confidential.is_(False),
                Meeting.created_by == actor_id,
                Meeting.id.in_(invited),
            )
        )
    return [m.to_dict() for m in db.session.execute(stmt).scalars().all()]


def get_meeting(meeting_id: int, actor_id: int | None) -> dict:
    meeting = _get_visible(meeting_id, actor_id)
    d = meeting.to_dict(include_participants=True)
    d["can_change_status"] = can_transition("meeting", meeting, actor_id)
    return d


def create_meeting(data: dict, participant_ids: list[int], actor_id: int) -> Meeting:
    """Create a meeting and invite *participant_ids* in one transaction."""
    mode = data.get("mode") or "offline"
    errors = {}
    if mode not in MEETING_MODES:
        errors["mode"] = f"Must be one of: {', '.join(sorted(MEETING_MODES))}"
    wanted = list(dict.fromkeys(participant_ids))
    if wanted:
        known = set(
            db.session.execute(select(User.id).where(User.id.in_(wanted))).scalars().all()
        )
        missing = [uid for uid in wanted if uid not in known]
        if missing:
            errors["participants"] = f"Unknown user ids: {missing}"
    if errors:
        raise ValidationError("Invalid meeting", details=errors)

    meeting = Meeting(
        title=data["title"],
        meeting_date=data["meeting_date"],
        meeting_time=data.get("meeting_time"),
        mode=mode,
        location=data.get("location"),
        notes=data.get("notes") or "",
        is_confidential=bool(data.get("is_confidential")),
        created_by=actor_id,
    )
    db.session.add(meeting)
    db.session.flush()
    for uid in wanted:
        db.session.add(MeetingParticipant(meeting_id=meeting.id, user_id=uid))
    db.session.commit()

    logger.info(
        "Meeting created",
        extra={"meeting_id": meeting.id, "actor_id": actor_id, "participants": len(wanted)},
    )
    return meeting


def change_meeting_status(meeting_id: int, status: str, actor_id: int) -> dict:
    _get_visible(meeting_id, actor_id)
    return change_labels("meeting", meeting_id, actor_id, status=status)


def respond_to_meeting(meeting_id: int, actor_id: int, response: str) -> MeetingParticipant:
    """Record the invited actor's accepted/rejected answer."""
    if response not in PARTICIPANT_RESPONSES:
        raise ValidationError(
            "Invalid response",
            details={"response": f"Must be one of: {', '.join(sorted(PARTICIPANT_RESPONSES))}"},
        )
    meeting = _get_visible(meeting_id, actor_id)
    participant = meeting.participants.filter_by(user_id=actor_id).first()
    if participant is None:
        raise PermissionDenied(actor_id, "meeting.respond")

    participant.status = response
    participant.responded_at = datetime.now(timezone.utc)
    db.session.commit()
    logger.info(
        "Meeting invitation answered",
        extra={"meeting_id": meeting_id, "actor_id": actor_id, "response": response},
    )
    return participant
