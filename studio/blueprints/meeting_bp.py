"""
Meeting Blueprint.

Endpoints:
    GET   /api/v1/meetings                  — meetings visible to the caller
    POST  /api/v1/meetings                  — create + invite participants
    GET   /api/v1/meetings/<id>             — detail with participants
    PATCH /api/v1/meetings/<id>/status      — complete / cancel
    POST  /api/v1/meetings/<id>/respond     — accept / reject an invitation
"""

from flask import Blueprint, jsonify, request

from studio.auth import current_user_id, require_auth
from studio.services import meeting_service
from studio.utils.errors import E, api_error, field_errors
from studio.utils.helpers import parse_date_input, parse_id_list, text_field_errors

meeting_bp = Blueprint("meeting", __name__, url_prefix="/api/v1")

_MEETING_TEXT_KEYS = ("meeting_time", "mode", "location", "notes")


@meeting_bp.route("/meetings", methods=["GET"])
@require_auth
def list_meetings():
    return jsonify(meeting_service.list_meetings(current_user_id())), 200


@meeting_bp.route("/meetings", methods=["POST"])
@require_auth
def create_meeting():
    data = request.get_json(silent=True) or {}

    errors: dict[str, str] = text_field_errors(data, _MEETING_TEXT_KEYS)
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        errors["title"] = "Title is required."
    meeting_date = None
    try:
        meeting_date = parse_date_input(data.get("meeting_date"))
    except ValueError as exc:
        errors["meeting_date"] = str(exc)
    if meeting_date is None and "meeting_date" not in errors:
        errors["meeting_date"] = "Meeting date is required."
    participants = []
    try:
        participants = parse_id_list(data.get("participants"), "participants")
    except ValueError as exc:
        errors["participants"] = str(exc)
    if errors:
        return field_errors(errors)

    meeting = meeting_service.create_meeting(
        {
            "title": title.strip(),
            "meeting_date": meeting_date,
            "meeting_time": data.get("meeting_time"),
            "mode": data.get("mode"),
            "location": data.get("location"),
            "notes": data.get("notes"),
            "is_confidential": data.get("is_confidential"),
        },
        participants,
        current_user_id(),
    )
    return jsonify(meeting.to_dict(include_participants=True)), 201


@meeting_bp.route("/meetings/<int:meeting_id>", methods=["GET"])
@require_auth
def get_meeting(meeting_id: int):
    return jsonify(meeting_service.get_meeting(meeting_id, current_user_id())), 200


@meeting_bp.route("/meetings/<int:meeting_id>/status", methods=["PATCH"])
@require_auth
def change_meeting_status(meeting_id: int):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not isinstance(status, str) or not status:
        return api_error(E.VALIDATION_REQUIRED, "status is required")
    result = meeting_service.change_meeting_status(meeting_id, status, current_user_id())
    return jsonify(result), 200


@meeting_bp.route("/meetings/<int:meeting_id>/respond", methods=["POST"])
@require_auth
def respond(meeting_id: int):
    data = request.get_json(silent=True) or {}
    response = data.get("response")
    if not isinstance(response, str) or not response:
        return api_error(E.VALIDATION_REQUIRED, "response is required")
    participant = meeting_service.respond_to_meeting(meeting_id, current_user_id(), response)
    return jsonify(participant.to_dict()), 200
