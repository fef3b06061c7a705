"""
Task Blueprint.

Endpoints:
    GET   /api/v1/tasks                 — list (?status=, ?assigned_to=)
    POST  /api/v1/tasks                 — create
    GET   /api/v1/tasks/<id>            — detail
    PATCH /api/v1/tasks/<id>/status     — change status
    GET   /api/v1/tasks/<id>/history    — status audit trail
"""

from flask import Blueprint, jsonify, request

from studio.auth import current_user_id, require_auth
from studio.services import task_service
from studio.utils.errors import E, api_error, field_errors
from studio.utils.helpers import parse_date_input, text_field_errors

task_bp = Blueprint("task", __name__, url_prefix="/api/v1")

_TASK_TEXT_KEYS = ("description", "priority", "status")


@task_bp.route("/tasks", methods=["GET"])
@require_auth
def list_tasks():
    tasks = task_service.list_tasks(
        status=request.args.get("status", type=str),
        assigned_to=request.args.get("assigned_to", type=int),
    )
    return jsonify([t.to_dict() for t in tasks]), 200


@task_bp.route("/tasks", methods=["POST"])
@require_auth
def create_task():
    data = request.get_json(silent=True) or {}

    errors: dict[str, str] = text_field_errors(data, _TASK_TEXT_KEYS)
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        errors["title"] = "Title is required."
    due_date = None
    try:
        due_date = parse_date_input(data.get("due_date"))
    except ValueError as exc:
        errors["due_date"] = str(exc)
    assigned_to = data.get("assigned_to")
    if assigned_to is not None and (isinstance(assigned_to, bool) or not isinstance(assigned_to, int)):
        errors["assigned_to"] = "Must be an integer."
    if errors:
        return field_errors(errors)

    task = task_service.create_task(
        {
            "title": title.strip(),
            "description": data.get("description"),
            "priority": data.get("priority"),
            "status": data.get("status"),
            "due_date": due_date,
            "assigned_to": assigned_to,
        },
        current_user_id(),
    )
    return jsonify(task.to_dict()), 201


@task_bp.route("/tasks/<int:task_id>", methods=["GET"])
@require_auth
def get_task(task_id: int):
    return jsonify(task_service.get_task(task_id, current_user_id())), 200


@task_bp.route("/tasks/<int:task_id>/status", methods=["PATCH"])
@require_auth
def change_task_status(task_id: int):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not isinstance(status, str) or not status:
        return api_error(E.VALIDATION_REQUIRED, "status is required")
    return jsonify(task_service.change_task_status(task_id, status, current_user_id())), 200


@task_bp.route("/tasks/<int:task_id>/history", methods=["GET"])
@require_auth
def task_history(task_id: int):
    return jsonify(task_service.task_history(task_id)), 200
