"""
Event Service: events, their status/phase and their crew.

Event crew is managed one row at a time (add / change status / remove).
Adding a freelancer also records the name in the known-freelancer directory,
inside the same transaction as the crew row.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from studio.core.exceptions import NotFoundError, ValidationError
from studio.models import db
from studio.models.auth import User
from studio.models.event import (
    CREW_STATUSES,
    CREW_TYPES,
    EVENT_PHASES,
    EVENT_STATUSES,
    EVENT_TYPES,
    Event,
    EventCrew,
)
from studio.services.freelancer_service import remember_freelancer
from studio.services.permission import check_any_role
from studio.services.status_gate import GATES, can_transition, change_labels, list_history
from studio.utils.helpers import get_or_raise

logger = logging.getLogger(__name__)

EVENT_MANAGERS = GATES["event"].roles


# ═════════════════════════════════════════════════════════════════════════════
# Events
# ═════════════════════════════════════════════════════════════════════════════


def list_events(*, status: str | None = None, phase: str | None = None) -> list[Event]:
    stmt = select(Event).order_by(Event.start_date.desc(), Event.id.desc())
    if status:
        stmt = stmt.where(Event.status == status)
    if phase:
        stmt = stmt.where(Event.current_phase == phase)
    return list(db.session.execute(stmt).scalars().all())


def get_event(event_id: int, actor_id: int | None = None) -> dict:
    event = get_or_raise(Event, event_id, label="Event")
    d = event.to_dict()
    d["crew_count"] = event.crew.count()
    d["can_change_status"] = can_transition("event", event, actor_id)
    return d


def create_event(data: dict, actor_id: int) -> Event:
    check_any_role(actor_id, EVENT_MANAGERS, action="event.create")

    event_type = data.get("event_type") or "other"
    status = data.get("status") or "planning"
    phase = data.get("current_phase") or "pre_event"
    errors = {}
    if event_type not in EVENT_TYPES:
        errors["event_type"] = f"Must be one of: {', '.join(sorted(EVENT_TYPES))}"
    if status not in EVENT_STATUSES:
        errors["status"] = f"Must be one of: {', '.join(sorted(EVENT_STATUSES))}"
    if phase not in EVENT_PHASES:
        errors["current_phase"] = f"Must be one of: {', '.join(sorted(EVENT_PHASES))}"
    start, end = data.get("start_date"), data.get("end_date")
    if start and end and end < start:
        errors["end_date"] = "end_date cannot be before start_date."
    pic_id = data.get("pic_id")
    if pic_id is not None and db.session.get(User, pic_id) is None:
        errors["pic_id"] = f"Unknown user id {pic_id}"
    if errors:
        raise ValidationError("Invalid event", details=errors)

    event = Event(
        name=data["name"],
        event_type=event_type,
        status=status,
        current_phase=phase,
        location=data.get("location"),
        start_date=start,
        end_date=end,
        pic_id=pic_id,
        created_by=actor_id,
    )
    db.session.add(event)
    db.session.commit()
    logger.info("Event created", extra={"event_id": event.id, "actor_id": actor_id})
    return event


def change_event_labels(
    event_id: int,
    actor_id: int,
    *,
    status: str | None = None,
    phase: str | None = None,
) -> dict:
    return change_labels("event", event_id, actor_id, status=status, phase=phase)


def event_history(event_id: int) -> list[dict]:
    return list_history("event", event_id)


# ═════════════════════════════════════════════════════════════════════════════
# Event crew
# ═════════════════════════════════════════════════════════════════════════════


def list_crew(event_id: int) -> list[dict]:
    event = get_or_raise(Event, event_id, label="Event")
    return [c.to_dict() for c in event.crew.order_by(EventCrew.id).all()]


def add_crew(event_id: int, data: dict, actor_id: int) -> EventCrew:
    """Add one crew member; freelancers are also remembered in the directory."""
    check_any_role(actor_id, EVENT_MANAGERS, action="event.crew.add")
    get_or_raise(Event, event_id, label="Event")

    crew_type = data.get("crew_type") or "internal"
    errors = {}
    if crew_type not in CREW_TYPES:
        errors["crew_type"] = f"Must be one of: {', '.join(sorted(CREW_TYPES))}"
    if not (data.get("role") or "").strip():
        errors["role"] = "Role is required."
    fee = data.get("fee")
    if fee is not None and fee < 0:
        errors["fee"] = "Fee cannot be negative."

    user_id = data.get("user_id")
    name = (data.get("freelancer_name") or "").strip()
    if crew_type == "internal":
        if user_id is None:
            errors["user_id"] = "Internal crew requires user_id."
        elif db.session.get(User, user_id) is None:
            errors["user_id"] = f"Unknown user id {user_id}"
    elif crew_type == "freelancer" and not name:
        errors["freelancer_name"] = "Freelancer name is required."
    if errors:
        raise ValidationError("Invalid crew member", details=errors)

    is_freelancer = crew_type == "freelancer"
    crew = EventCrew(
        event_id=event_id,
        crew_type=crew_type,
        user_id=None if is_freelancer else user_id,
        freelancer_name=name if is_freelancer else None,
        freelancer_contact=data.get("freelancer_contact") if is_freelancer else None,
        freelancer_company=data.get("freelancer_company") if is_freelancer else None,
        freelancer_location=data.get("freelancer_location") if is_freelancer else None,
        role=data["role"].strip(),
        fee=fee,
        notes=data.get("notes") or "",
    )
    try:
        db.session.add(crew)
        if is_freelancer:
            remember_freelancer(
                name,
                contact=crew.freelancer_contact,
                company=crew.freelancer_company,
                location=crew.freelancer_location,
                created_by=actor_id,
            )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Adding event crew failed", extra={"event_id": event_id})
        raise

    logger.info(
        "Event crew added",
        extra={"event_id": event_id, "crew_id": crew.id, "actor_id": actor_id},
    )
    return crew


def _get_crew_row(event_id: int, crew_id: int) -> EventCrew:
    crew = db.session.get(EventCrew, crew_id)
    if crew is None or crew.event_id != event_id:
        raise NotFoundError(resource="EventCrew", resource_id=crew_id)
    return crew


def update_crew_status(event_id: int, crew_id: int, status: str, actor_id: int) -> EventCrew:
    check_any_role(actor_id, EVENT_MANAGERS, action="event.crew.update")
    crew = _get_crew_row(event_id, crew_id)
    if status not in CREW_STATUSES:
        raise ValidationError(
            "Invalid crew status",
            details={"status": f"Must be one of: {', '.join(sorted(CREW_STATUSES))}"},
        )
    crew.status = status
    db.session.commit()
    return crew


def remove_crew(event_id: int, crew_id: int, actor_id: int) -> None:
    check_any_role(actor_id, EVENT_MANAGERS, action="event.crew.remove")
    crew = _get_crew_row(event_id, crew_id)
    db.session.delete(crew)
    db.session.commit()
    logger.info(
        "Event crew removed",
        extra={"event_id": event_id, "crew_id": crew_id, "actor_id": actor_id},
    )
