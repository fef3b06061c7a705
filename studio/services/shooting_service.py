"""
Shooting Schedule Service.

A shooting request is filed by any employee, edited by its requester or by
HR, and approved / rejected / cancelled through the status gate.
Cancelling needs a reason and puts the linked task on hold.  Rescheduling
moves the date (the old one is kept in ``rescheduled_from``), sends the
shooting back to ``pending`` for re-approval and moves the linked task's
due date along.

Editing a shooting is one logical operation: the parent fields and the crew
reconciliation commit together or not at all.

Usage:
    from studio.services import shooting_service
    from studio.services.crew_reconciler import CrewEditState

    state = CrewEditState.from_payload(body)
    shooting = shooting_service.update_shooting(sid, fields, state, actor_id)
"""

import logging
import re
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from studio.core.exceptions import NotFoundError, ValidationError
from studio.models import db
from studio.models.auth import User
from studio.models.shooting import SHOOTING_STATUSES, ShootingSchedule
from studio.models.task import Task
from studio.services.crew_reconciler import (
    CrewEditState,
    get_crew,
    reconcile_crew,
    validate_edit_state,
)
from studio.services.permission import PermissionDenied, has_any_role
from studio.services.status_gate import can_transition, change_labels, list_history
from studio.utils.helpers import get_or_raise

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "scheduled_date",
    "scheduled_time",
    "location",
    "director",
    "runner",
    "notes",
    "task_id",
)

# may edit or delete any shooting, besides its requester
SHOOTING_EDITORS = frozenset({"hr", "super_admin"})

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_can_edit(shooting: ShootingSchedule, actor_id: int | None, action: str) -> None:
    if actor_id is not None and shooting.requested_by == actor_id:
        return
    if not has_any_role(actor_id, SHOOTING_EDITORS):
        raise PermissionDenied(actor_id, action)


def _validate_fields(fields: dict) -> None:
    errors = {}
    if "title" in fields and not (fields["title"] or "").strip():
        errors["title"] = "Title is required."
    if "scheduled_date" in fields and fields["scheduled_date"] is None:
        errors["scheduled_date"] = "Scheduled date is required."
    scheduled_time = fields.get("scheduled_time")
    if scheduled_time and not _TIME_RE.match(scheduled_time):
        errors["scheduled_time"] = "Use HH:MM."
    for key in ("director", "runner"):
        uid = fields.get(key)
        if uid is not None and db.session.get(User, uid) is None:
            errors[key] = f"Unknown user id {uid}"
    task_id = fields.get("task_id")
    if task_id is not None and db.session.get(Task, task_id) is None:
        errors["task_id"] = f"Unknown task id {task_id}"
    if errors:
        raise ValidationError("Invalid shooting schedule", details=errors)


# ═════════════════════════════════════════════════════════════════════════════
# Queries
# ═════════════════════════════════════════════════════════════════════════════


def list_shootings(*, status: str | None = None) -> list[ShootingSchedule]:
    stmt = select(ShootingSchedule).order_by(
        ShootingSchedule.scheduled_date.desc(), ShootingSchedule.id.desc()
    )
    if status:
        if status not in SHOOTING_STATUSES:
            raise ValidationError(
                "Invalid status filter",
                details={"status": f"Must be one of: {', '.join(sorted(SHOOTING_STATUSES))}"},
            )
        stmt = stmt.where(ShootingSchedule.status == status)
    return list(db.session.execute(stmt).scalars().all())


def get_shooting(shooting_id: int, actor_id: int | None = None) -> dict:
    """Shooting detail with its crew split by partition."""
    shooting = get_or_raise(ShootingSchedule, shooting_id, label="ShootingSchedule")
    d = shooting.to_dict()
    d["crew"] = get_crew(shooting.id)
    d["can_approve"] = can_transition("shooting", shooting, actor_id)
    return d


def shooting_history(shooting_id: int) -> list[dict]:
    return list_history("shooting", shooting_id)


# ═════════════════════════════════════════════════════════════════════════════
# Mutations
# ═════════════════════════════════════════════════════════════════════════════


def create_shooting(fields: dict, state: CrewEditState | None, actor_id: int) -> ShootingSchedule:
    """File a new shooting request with its initial crew."""
    fields = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    missing = [k for k in ("title", "scheduled_date") if not fields.get(k)]
    if missing:
        raise ValidationError(
            "Missing required fields",
            details={k: "Required." for k in missing},
        )
    _validate_fields(fields)
    state = state or CrewEditState()

    try:
        shooting = ShootingSchedule(requested_by=actor_id, status="pending", **fields)
        db.session.add(shooting)
        db.session.flush()
        reconcile_crew(shooting.id, state, actor_id, commit=False)
        db.session.commit()
    except (SQLAlchemyError, ValidationError, NotFoundError):
        db.session.rollback()
        raise

    logger.info("Shooting requested", extra={"shooting_id": shooting.id, "actor_id": actor_id})
    return shooting


def update_shooting(
    shooting_id: int,
    fields: dict,
    state: CrewEditState | None,
    actor_id: int,
) -> ShootingSchedule:
    """Update the parent fields and reconcile the crew in one transaction.

    ``state`` None leaves the crew untouched.
    """
    shooting = get_or_raise(ShootingSchedule, shooting_id, label="ShootingSchedule")
    _check_can_edit(shooting, actor_id, "shooting.update")

    fields = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    _validate_fields(fields)
    if state is not None:
        validate_edit_state(shooting_id, state)

    try:
        for key, value in fields.items():
            setattr(shooting, key, value)
        db.session.flush()
        if state is not None:
            reconcile_crew(shooting_id, state, actor_id, commit=False)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(
            "Shooting update failed, rolled back",
            extra={"shooting_id": shooting_id, "actor_id": actor_id},
        )
        raise

    logger.info(
        "Shooting updated",
        extra={"shooting_id": shooting_id, "actor_id": actor_id, "fields": sorted(fields)},
    )
    return shooting


def approve_shooting(shooting_id: int, actor_id: int) -> dict:
    return change_labels("shooting", shooting_id, actor_id, status="approved")


def reject_shooting(shooting_id: int, actor_id: int) -> dict:
    return change_labels("shooting", shooting_id, actor_id, status="rejected")


def _check_can_move(shooting: ShootingSchedule, actor_id: int | None, action: str) -> None:
    # cancel and reschedule change the status, so they share the approval gate
    if not can_transition("shooting", shooting, actor_id):
        raise PermissionDenied(actor_id, action)


def cancel_shooting(shooting_id: int, actor_id: int, reason: str | None) -> dict:
    """Cancel a shooting with a reason; the linked task goes on hold.

    The status change, its audit row, ``cancelled_at``, ``cancel_reason`` and
    the task side effect commit together.
    """
    shooting = get_or_raise(ShootingSchedule, shooting_id, label="ShootingSchedule")
    _check_can_move(shooting, actor_id, "shooting.cancel")
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError(
            "A reason is required to cancel a shooting",
            details={"reason": "Required."},
        )

    try:
        result = change_labels("shooting", shooting_id, actor_id, status="cancelled", commit=False)
        shooting.cancel_reason = reason
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(
            "Shooting cancel failed, rolled back",
            extra={"shooting_id": shooting_id, "actor_id": actor_id},
        )
        raise

    logger.info("Shooting cancelled", extra={"shooting_id": shooting_id, "actor_id": actor_id})
    result["entity"] = shooting.to_dict()
    return result


def reschedule_shooting(
    shooting_id: int,
    actor_id: int,
    *,
    scheduled_date: date,
    scheduled_time: str,
    reason: str | None,
) -> dict:
    """Move a shooting to a new date and send it back for approval.

    Records the previous date in ``rescheduled_from``, resets the status to
    ``pending`` through the gate (audited) and moves the linked task's due
    date to the new date, all in one transaction.
    """
    shooting = get_or_raise(ShootingSchedule, shooting_id, label="ShootingSchedule")
    _check_can_move(shooting, actor_id, "shooting.reschedule")

    reason = (reason or "").strip()
    errors = {}
    if scheduled_date is None:
        errors["scheduled_date"] = "New date is required."
    if not scheduled_time or not _TIME_RE.match(scheduled_time):
        errors["scheduled_time"] = "Use HH:MM."
    if not reason:
        errors["reason"] = "Required."
    if errors:
        raise ValidationError("Invalid reschedule", details=errors)

    try:
        result = change_labels("shooting", shooting_id, actor_id, status="pending", commit=False)
        shooting.rescheduled_from = shooting.scheduled_date
        shooting.scheduled_date = scheduled_date
        shooting.scheduled_time = scheduled_time
        shooting.reschedule_reason = reason
        if shooting.task_id is not None:
            task = db.session.get(Task, shooting.task_id)
            if task is not None:
                task.due_date = scheduled_date
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(
            "Shooting reschedule failed, rolled back",
            extra={"shooting_id": shooting_id, "actor_id": actor_id},
        )
        raise

    logger.info(
        "Shooting rescheduled",
        extra={"shooting_id": shooting_id, "actor_id": actor_id, "task_id": shooting.task_id},
    )
    result["entity"] = shooting.to_dict()
    return result


def delete_shooting(shooting_id: int, actor_id: int) -> None:
    """Delete a shooting; its crew rows go with it."""
    shooting = get_or_raise(ShootingSchedule, shooting_id, label="ShootingSchedule")
    _check_can_edit(shooting, actor_id, "shooting.delete")
    db.session.delete(shooting)
    db.session.commit()
    logger.info("Shooting deleted", extra={"shooting_id": shooting_id, "actor_id": actor_id})
