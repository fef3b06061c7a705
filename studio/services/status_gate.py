"""
Status / Phase Gate Service

Authorization-checked label changes for every gated entity type, with one
audit row per field written.

Gated entity types and who may move them:
    event     status + phase   super_admin, hr, project_manager
    shooting  status           hr, super_admin
    task      status           super_admin, hr, project_manager, or its creator
    meeting   status           super_admin, hr, or its creator

There is no ordered progression: any label of the closed set may replace any
other, including a re-write of the same value.  The authorization check runs
here, inside the mutating call; a caller that skips its own UI check still
gets PermissionDenied.

Per-entity side effects live in POST_TRANSITION_HOOKS and run inside the same
transaction as the label change:
    shooting → approved   approved_by = actor, linked task → in_progress
    shooting → rejected   linked task → on_hold
    shooting → cancelled  cancelled_at = now, linked task → on_hold

Usage:
    from studio.services.status_gate import change_labels

    result = change_labels("event", 12, actor_id, status="on_going", phase="execution")
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from studio.core.exceptions import ValidationError
from studio.models import db
from studio.models.audit import AuditLog, write_audit
from studio.models.event import EVENT_PHASES, EVENT_STATUSES, Event
from studio.models.meeting import MEETING_STATUSES, Meeting
from studio.models.shooting import SHOOTING_STATUSES, ShootingSchedule
from studio.models.task import TASK_STATUSES, Task
from studio.services.permission import PermissionDenied, get_user_roles
from studio.utils.helpers import get_or_raise

logger = logging.getLogger(__name__)

# gated argument → audit action
_FIELD_ACTIONS = {
    "status": "status_changed",
    "phase": "phase_changed",
}


@dataclass(frozen=True)
class GateRule:
    """Who may change which labels of one entity type."""

    model: type
    label: str
    # gated argument → (model column, closed label set)
    fields: dict
    roles: frozenset
    creator_field: str | None = None


GATES: dict[str, GateRule] = {
    "event": GateRule(
        model=Event,
        label="Event",
        fields={"status": ("status", EVENT_STATUSES), "phase": ("current_phase", EVENT_PHASES)},
        roles=frozenset({"super_admin", "hr", "project_manager"}),
    ),
    "shooting": GateRule(
        model=ShootingSchedule,
        label="ShootingSchedule",
        fields={"status": ("status", SHOOTING_STATUSES)},
        roles=frozenset({"hr", "super_admin"}),
    ),
    "task": GateRule(
        model=Task,
        label="Task",
        fields={"status": ("status", TASK_STATUSES)},
        roles=frozenset({"super_admin", "hr", "project_manager"}),
        creator_field="created_by",
    ),
    "meeting": GateRule(
        model=Meeting,
        label="Meeting",
        fields={"status": ("status", MEETING_STATUSES)},
        roles=frozenset({"super_admin", "hr"}),
        creator_field="created_by",
    ),
}


# ═════════════════════════════════════════════════════════════════════════════
# Authorization
# ═════════════════════════════════════════════════════════════════════════════


def _get_rule(entity_type: str) -> GateRule:
    rule = GATES.get(entity_type)
    if rule is None:
        raise ValidationError(
            f"Unknown entity type: {entity_type}",
            details={"entity_type": f"Must be one of: {', '.join(sorted(GATES))}"},
        )
    return rule


def can_transition(entity_type: str, entity, actor_id: int | None) -> bool:
    """True if *actor_id* may change the gated labels of *entity*.

    Read-only; used by list/detail endpoints so clients can hide controls.
    """
    rule = _get_rule(entity_type)
    if actor_id is None:
        return False
    if rule.creator_field and getattr(entity, rule.creator_field, None) == actor_id:
        return True
    return bool(get_user_roles(actor_id) & rule.roles)


# ═════════════════════════════════════════════════════════════════════════════
# Post-transition hooks
# ═════════════════════════════════════════════════════════════════════════════


def _move_linked_task(shooting: ShootingSchedule, new_status: str, actor_id, now) -> list[dict]:
    if shooting.task_id is None:
        return []
    task = db.session.get(Task, shooting.task_id)
    if task is None:
        return []

    old_status = task.status
    task.status = new_status
    write_audit(
        entity_type="task",
        entity_id=task.id,
        action="status_changed",
        field="status",
        old_value=old_status,
        new_value=new_status,
        actor_user_id=actor_id,
        timestamp=now,
    )
    return [{
        "entity_type": "task",
        "entity_id": task.id,
        "field": "status",
        "old_value": old_status,
        "new_value": new_status,
    }]


def _on_shooting_approved(shooting: ShootingSchedule, actor_id, now) -> list[dict]:
    shooting.approved_by = actor_id
    return _move_linked_task(shooting, "in_progress", actor_id, now)


def _on_shooting_rejected(shooting: ShootingSchedule, actor_id, now) -> list[dict]:
    return _move_linked_task(shooting, "on_hold", actor_id, now)


def _on_shooting_cancelled(shooting: ShootingSchedule, actor_id, now) -> list[dict]:
    shooting.cancelled_at = now
    return _move_linked_task(shooting, "on_hold", actor_id, now)


# (entity_type, new status) → hook(entity, actor_id, timestamp) → side effects
POST_TRANSITION_HOOKS = {
    ("shooting", "approved"): _on_shooting_approved,
    ("shooting", "rejected"): _on_shooting_rejected,
    ("shooting", "cancelled"): _on_shooting_cancelled,
}


# ═════════════════════════════════════════════════════════════════════════════
# Gate
# ═════════════════════════════════════════════════════════════════════════════


def change_labels(
    entity_type: str,
    entity_id: int,
    actor_id: int | None,
    *,
    status: str | None = None,
    phase: str | None = None,
    commit: bool = True,
) -> dict:
    """
    Change the status and/or phase of one entity.

    Args:
        entity_type: One of GATES.
        entity_id: Primary key of the entity.
        actor_id: The acting user; checked against the gate's allow-list.
        status: New status label, or None to leave it unchanged.
        phase: New phase label (events only), or None.
        commit: Commit at the end.  Pass False to fold the change into a
            larger transaction owned by the caller.

    Returns:
        {"entity_type", "entity_id", "changes": [...], "side_effects": [...],
         "entity": entity.to_dict()}

    Raises:
        ValidationError: Unknown entity type, nothing requested, a field the
            entity does not gate, or a label outside the closed set.
        NotFoundError: Unknown entity id.
        PermissionDenied: Actor outside the allow-list and not the creator.
        SQLAlchemyError: After rolling the session back.
    """
    rule = _get_rule(entity_type)
    entity = get_or_raise(rule.model, entity_id, label=rule.label)

    if not can_transition(entity_type, entity, actor_id):
        raise PermissionDenied(actor_id, f"{entity_type}.change_labels")

    requested = {
        name: value
        for name, value in (("status", status), ("phase", phase))
        if value is not None
    }
    if not requested:
        raise ValidationError("status or phase is required")

    errors = {}
    for name, value in requested.items():
        if name not in rule.fields:
            errors[name] = f"{rule.label} has no {name}."
            continue
        _, allowed = rule.fields[name]
        if value not in allowed:
            errors[name] = f"Must be one of: {', '.join(sorted(allowed))}"
    if errors:
        raise ValidationError(f"Invalid {entity_type} labels", details=errors)

    now = datetime.now(timezone.utc)
    changes = []
    side_effects = []
    try:
        for name, value in requested.items():
            column, _ = rule.fields[name]
            old_value = getattr(entity, column)
            setattr(entity, column, value)
            write_audit(
                entity_type=entity_type,
                entity_id=entity.id,
                action=_FIELD_ACTIONS[name],
                field=name,
                old_value=old_value,
                new_value=value,
                actor_user_id=actor_id,
                timestamp=now,
            )
            changes.append({"field": name, "old_value": old_value, "new_value": value})

        hook = POST_TRANSITION_HOOKS.get((entity_type, requested.get("status")))
        if hook:
            side_effects = hook(entity, actor_id, now)

        if commit:
            db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(
            "Label change failed, rolled back",
            extra={"entity_type": entity_type, "entity_id": entity_id, "actor_id": actor_id},
        )
        raise

    logger.info(
        "Labels changed",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "actor_id": actor_id,
            "changes": changes,
        },
    )
    return {
        "entity_type": entity_type,
        "entity_id": entity.id,
        "changes": changes,
        "side_effects": side_effects,
        "entity": entity.to_dict(),
    }


def list_history(entity_type: str, entity_id: int) -> list[dict]:
    """Audit rows of one entity, oldest first."""
    rule = _get_rule(entity_type)
    get_or_raise(rule.model, entity_id, label=rule.label)
    stmt = (
        select(AuditLog)
        .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == str(entity_id))
        .order_by(AuditLog.timestamp, AuditLog.id)
    )
    return [row.to_dict() for row in db.session.execute(stmt).scalars().all()]
