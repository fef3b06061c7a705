"""
Event Blueprint.

Endpoints:
    GET    /api/v1/events                          — list (?status=, ?phase=)
    POST   /api/v1/events                          — create
    GET    /api/v1/events/<id>                     — detail
    PATCH  /api/v1/events/<id>/status              — change status and/or phase
    GET    /api/v1/events/<id>/history             — status/phase audit trail
    GET    /api/v1/events/<id>/crew                — crew list
    POST   /api/v1/events/<id>/crew                — add a crew member
    PATCH  /api/v1/events/<id>/crew/<crew_id>      — change crew status
    DELETE /api/v1/events/<id>/crew/<crew_id>      — remove a crew member
"""

import logging

from flask import Blueprint, jsonify, request

from studio.auth import current_user_id, require_auth
from studio.services import event_service
from studio.utils.errors import E, api_error, field_errors
from studio.utils.helpers import parse_date_input, text_field_errors

logger = logging.getLogger(__name__)

event_bp = Blueprint("event", __name__, url_prefix="/api/v1")

_EVENT_TEXT_KEYS = ("event_type", "status", "current_phase", "location")
_CREW_TEXT_KEYS = (
    "crew_type",
    "freelancer_name",
    "freelancer_contact",
    "freelancer_company",
    "freelancer_location",
    "notes",
)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@event_bp.route("/events", methods=["GET"])
@require_auth
def list_events():
    events = event_service.list_events(
        status=request.args.get("status", type=str),
        phase=request.args.get("phase", type=str),
    )
    return jsonify([e.to_dict() for e in events]), 200


@event_bp.route("/events", methods=["POST"])
@require_auth
def create_event():
    data = request.get_json(silent=True) or {}

    errors: dict[str, str] = text_field_errors(data, _EVENT_TEXT_KEYS)
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        errors["name"] = "Event name is required."

    parsed = {}
    for key in ("start_date", "end_date"):
        try:
            parsed[key] = parse_date_input(data.get(key))
        except ValueError as exc:
            errors[key] = str(exc)

    pic_id = data.get("pic_id")
    if pic_id is not None and not _is_int(pic_id):
        errors["pic_id"] = "Must be an integer."

    if errors:
        return field_errors(errors)

    event = event_service.create_event(
        {
            "name": name.strip(),
            "event_type": data.get("event_type"),
            "status": data.get("status"),
            "current_phase": data.get("current_phase"),
            "location": data.get("location"),
            "pic_id": pic_id,
            **parsed,
        },
        current_user_id(),
    )
    return jsonify(event.to_dict()), 201


@event_bp.route("/events/<int:event_id>", methods=["GET"])
@require_auth
def get_event(event_id: int):
    return jsonify(event_service.get_event(event_id, current_user_id())), 200


@event_bp.route("/events/<int:event_id>/status", methods=["PATCH"])
@require_auth
def change_event_status(event_id: int):
    """Body: {"status"?: str, "phase"?: str} — at least one is required."""
    data = request.get_json(silent=True) or {}
    status, phase = data.get("status"), data.get("phase")

    errors: dict[str, str] = {}
    if status is None and phase is None:
        errors["status"] = "status or phase is required."
    for key, value in (("status", status), ("phase", phase)):
        if value is not None and not isinstance(value, str):
            errors[key] = "Must be a string."
    if errors:
        return field_errors(errors)

    result = event_service.change_event_labels(
        event_id, current_user_id(), status=status, phase=phase,
    )
    return jsonify(result), 200


@event_bp.route("/events/<int:event_id>/history", methods=["GET"])
@require_auth
def event_history(event_id: int):
    return jsonify(event_service.event_history(event_id)), 200


# ── Crew ──────────────────────────────────────────────────────────────────────


@event_bp.route("/events/<int:event_id>/crew", methods=["GET"])
@require_auth
def list_crew(event_id: int):
    return jsonify(event_service.list_crew(event_id)), 200


@event_bp.route("/events/<int:event_id>/crew", methods=["POST"])
@require_auth
def add_crew(event_id: int):
    """Body: crew_type, role, user_id | freelancer_name/contact/company/location, fee, notes."""
    data = request.get_json(silent=True) or {}

    errors: dict[str, str] = text_field_errors(data, _CREW_TEXT_KEYS)
    if not isinstance(data.get("role"), str) or not data["role"].strip():
        errors["role"] = "Role is required."
    user_id = data.get("user_id")
    if user_id is not None and not _is_int(user_id):
        errors["user_id"] = "Must be an integer."
    fee = data.get("fee")
    if fee is not None and (isinstance(fee, bool) or not isinstance(fee, (int, float))):
        errors["fee"] = "Must be a number."
    if errors:
        return field_errors(errors)

    crew = event_service.add_crew(event_id, data, current_user_id())
    return jsonify(crew.to_dict()), 201


@event_bp.route("/events/<int:event_id>/crew/<int:crew_id>", methods=["PATCH"])
@require_auth
def update_crew(event_id: int, crew_id: int):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not isinstance(status, str):
        return api_error(E.VALIDATION_REQUIRED, "status is required")

    crew = event_service.update_crew_status(event_id, crew_id, status, current_user_id())
    return jsonify(crew.to_dict()), 200


@event_bp.route("/events/<int:event_id>/crew/<int:crew_id>", methods=["DELETE"])
@require_auth
def remove_crew(event_id: int, crew_id: int):
    event_service.remove_crew(event_id, crew_id, current_user_id())
    return jsonify({"deleted": True}), 200
