"""
Known-freelancer directory Blueprint.

Endpoints:
    GET /api/v1/freelancers — directory entries ordered by name (form pre-fill)
"""

from flask import Blueprint, jsonify

from studio.auth import require_auth
from studio.services import freelancer_service

freelancer_bp = Blueprint("freelancer", __name__, url_prefix="/api/v1")


@freelancer_bp.route("/freelancers", methods=["GET"])
@require_auth
def list_freelancers():
    return jsonify(freelancer_service.list_freelancers()), 200
