"""
Shooting Schedule Blueprint.

Endpoints:
    GET    /api/v1/shootings                 — list (optional ?status=)
    POST   /api/v1/shootings                 — file a request with its crew
    GET    /api/v1/shootings/<id>            — detail + crew by partition
    PUT    /api/v1/shootings/<id>            — edit fields + reconcile crew
    DELETE /api/v1/shootings/<id>            — delete (crew cascades)
    POST   /api/v1/shootings/<id>/approve    — HR approval
    POST   /api/v1/shootings/<id>/reject     — HR rejection
    POST   /api/v1/shootings/<id>/cancel     — cancel with a reason (linked task on hold)
    POST   /api/v1/shootings/<id>/reschedule — new date + reason, back to pending
    GET    /api/v1/shootings/<id>/history    — status audit trail

Crew body keys (PUT / POST):
    campers, additional, runners       list[int]  desired internal user ids
    freelancers                        list[{id?, name, cost, role, contact, company}]
    removed_freelancer_ids             list[int]  freelance rows removed in the dialog

Layer contract:
    - No ORM calls here; all DB work is delegated to shooting_service.
    - No db.session.commit() here.
"""

import logging

from flask import Blueprint, jsonify, request

from studio.auth import current_user_id, require_auth
from studio.services import shooting_service
from studio.services.crew_reconciler import CrewEditState
from studio.utils.errors import E, field_errors
from studio.utils.helpers import parse_date_input, text_field_errors

logger = logging.getLogger(__name__)

shooting_bp = Blueprint("shooting", __name__, url_prefix="/api/v1")

CREW_KEYS = ("campers", "additional", "runners", "freelancers", "removed_freelancer_ids")
_USER_ID_FIELDS = ("director", "runner", "task_id")
_TEXT_FIELDS = ("title", "scheduled_time", "location", "notes")


# ── Private helper ────────────────────────────────────────────────────────────


def _parse_body(data: dict):
    """Split a request body into (fields, crew_state, errors)."""
    errors: dict[str, str] = {}
    fields = {}

    for key in _TEXT_FIELDS:
        if key in data:
            value = data[key]
            if value is not None and not isinstance(value, str):
                errors[key] = "Must be a string."
            else:
                fields[key] = value.strip() if isinstance(value, str) else None

    if "scheduled_date" in data:
        try:
            fields["scheduled_date"] = parse_date_input(data["scheduled_date"])
        except ValueError as exc:
            errors["scheduled_date"] = str(exc)

    for key in _USER_ID_FIELDS:
        if key in data:
            value = data[key]
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                errors[key] = "Must be an integer or null."
            else:
                fields[key] = value

    state = None
    if any(key in data for key in CREW_KEYS):
        try:
            state = CrewEditState.from_payload({k: data.get(k) for k in CREW_KEYS})
        except ValueError as exc:
            errors["crew"] = str(exc)

    return fields, state, errors


# ── Routes ────────────────────────────────────────────────────────────────────


@shooting_bp.route("/shootings", methods=["GET"])
@require_auth
def list_shootings():
    status = request.args.get("status", type=str)
    shootings = shooting_service.list_shootings(status=status)
    return jsonify([s.to_dict() for s in shootings]), 200


@shooting_bp.route("/shootings", methods=["POST"])
@require_auth
def create_shooting():
    data = request.get_json(silent=True) or {}
    fields, state, errors = _parse_body(data)
    if not fields.get("title"):
        errors.setdefault("title", "Title is required.")
    if not fields.get("scheduled_date"):
        errors.setdefault("scheduled_date", "Scheduled date is required.")
    if errors:
        return field_errors(errors)

    shooting = shooting_service.create_shooting(fields, state, current_user_id())
    return jsonify(shooting_service.get_shooting(shooting.id, current_user_id())), 201


@shooting_bp.route("/shootings/<int:shooting_id>", methods=["GET"])
@require_auth
def get_shooting(shooting_id: int):
    return jsonify(shooting_service.get_shooting(shooting_id, current_user_id())), 200


@shooting_bp.route("/shootings/<int:shooting_id>", methods=["PUT"])
@require_auth
def update_shooting(shooting_id: int):
    """Save the edit dialog: parent fields and crew in one transaction.

    Omitting every crew key leaves the crew untouched.
    """
    data = request.get_json(silent=True) or {}
    fields, state, errors = _parse_body(data)
    if errors:
        return field_errors(errors, E.VALIDATION_INVALID)

    shooting_service.update_shooting(shooting_id, fields, state, current_user_id())
    return jsonify(shooting_service.get_shooting(shooting_id, current_user_id())), 200


@shooting_bp.route("/shootings/<int:shooting_id>", methods=["DELETE"])
@require_auth
def delete_shooting(shooting_id: int):
    shooting_service.delete_shooting(shooting_id, current_user_id())
    return jsonify({"deleted": True}), 200


@shooting_bp.route("/shootings/<int:shooting_id>/approve", methods=["POST"])
@require_auth
def approve_shooting(shooting_id: int):
    return jsonify(shooting_service.approve_shooting(shooting_id, current_user_id())), 200


@shooting_bp.route("/shootings/<int:shooting_id>/reject", methods=["POST"])
@require_auth
def reject_shooting(shooting_id: int):
    return jsonify(shooting_service.reject_shooting(shooting_id, current_user_id())), 200


@shooting_bp.route("/shootings/<int:shooting_id>/cancel", methods=["POST"])
@require_auth
def cancel_shooting(shooting_id: int):
    """Body: {"reason": str}."""
    data = request.get_json(silent=True) or {}
    reason = data.get("reason")
    if not isinstance(reason, str) or not reason.strip():
        return field_errors({"reason": "A cancellation reason is required."})
    return jsonify(shooting_service.cancel_shooting(shooting_id, current_user_id(), reason)), 200


@shooting_bp.route("/shootings/<int:shooting_id>/reschedule", methods=["POST"])
@require_auth
def reschedule_shooting(shooting_id: int):
    """Body: {"scheduled_date": "YYYY-MM-DD", "scheduled_time": "HH:MM", "reason": str}."""
    data = request.get_json(silent=True) or {}
    errors = text_field_errors(data, ("scheduled_time", "reason"))
    new_date = None
    try:
        new_date = parse_date_input(data.get("scheduled_date"))
    except ValueError as exc:
        errors["scheduled_date"] = str(exc)
    for key in ("scheduled_date", "scheduled_time", "reason"):
        if not data.get(key):
            errors.setdefault(key, "Required.")
    if errors:
        return field_errors(errors)

    result = shooting_service.reschedule_shooting(
        shooting_id,
        current_user_id(),
        scheduled_date=new_date,
        scheduled_time=data["scheduled_time"].strip(),
        reason=data["reason"],
    )
    return jsonify(result), 200


@shooting_bp.route("/shootings/<int:shooting_id>/history", methods=["GET"])
@require_auth
def shooting_history(shooting_id: int):
    return jsonify(shooting_service.shooting_history(shooting_id)), 200
