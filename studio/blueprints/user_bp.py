"""
User / role Blueprint.

Endpoints:
    POST /api/v1/users              — create an employee profile (hr, super_admin)
    GET  /api/v1/users              — active users (?include_inactive=true)
    PUT  /api/v1/users/<id>/roles   — replace the role set (super_admin)
    GET  /api/v1/me/roles           — roles of the caller
"""

from flask import Blueprint, jsonify, request

from studio.auth import current_user_id, require_auth
from studio.services import user_service
from studio.services.permission import get_user_roles
from studio.utils.errors import E, api_error, field_errors

user_bp = Blueprint("user", __name__, url_prefix="/api/v1")


def _parse_roles(value):
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(r, str) for r in value):
        raise ValueError("roles must be a list of strings")
    return value


@user_bp.route("/users", methods=["POST"])
@require_auth
def create_user():
    data = request.get_json(silent=True) or {}

    errors: dict[str, str] = {}
    if not isinstance(data.get("email"), str) or not data["email"].strip():
        errors["email"] = "Email is required."
    if not isinstance(data.get("full_name"), str) or not data["full_name"].strip():
        errors["full_name"] = "Full name is required."
    try:
        roles = _parse_roles(data.get("roles"))
    except ValueError as exc:
        errors["roles"] = str(exc)
    if errors:
        return field_errors(errors)

    user = user_service.create_user(
        data["email"].strip(), data["full_name"], roles, actor_id=current_user_id(),
    )
    return jsonify(user.to_dict(include_roles=True)), 201


@user_bp.route("/users", methods=["GET"])
@require_auth
def list_users():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    users = user_service.list_users(include_inactive=include_inactive)
    return jsonify([u.to_dict() for u in users]), 200


@user_bp.route("/users/<int:user_id>/roles", methods=["PUT"])
@require_auth
def set_roles(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        roles = _parse_roles(data.get("roles"))
    except ValueError as exc:
        return api_error(E.VALIDATION_INVALID, str(exc))

    result = user_service.set_user_roles(user_id, roles, actor_id=current_user_id())
    return jsonify({"user_id": user_id, "roles": result}), 200


@user_bp.route("/me/roles", methods=["GET"])
@require_auth
def my_roles():
    uid = current_user_id()
    return jsonify({"user_id": uid, "roles": sorted(get_user_roles(uid))}), 200
