"""
Studio Management System
Request identity resolution.

Every /api/v1/* endpoint except /api/v1/health acts on behalf of a user.
The acting user is named by the ``X-User-Id`` header (set by the gateway /
front-end session layer) and must be an existing, active profile.

Provides:
    - require_auth: decorator that resolves the header into g.current_user_id
    - current_user_id: accessor for services called from views
"""

import functools
import logging

from flask import g, request

from studio.models import db
from studio.models.auth import User
from studio.utils.errors import E, api_error

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"


def _get_user_id_from_request() -> int | None:
    raw = request.headers.get(USER_HEADER, "").strip()
    if not raw.isdigit():
        return None
    return int(raw)


def require_auth(f):
    """
    Decorator: require a known, active acting user.

    Sets g.current_user_id.  Responds 401 when the header is missing,
    malformed, or names an unknown or inactive user.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        user_id = _get_user_id_from_request()
        if user_id is None:
            return api_error(E.UNAUTHENTICATED, f"Authentication required. Provide {USER_HEADER} header.")

        user = db.session.get(User, user_id)
        if user is None or user.status != "active":
            logger.warning("Unknown or inactive user id in request: %s", user_id)
            return api_error(E.UNAUTHENTICATED, "Unknown or inactive user")

        g.current_user_id = user.id
        return f(*args, **kwargs)

    return decorated


def current_user_id() -> int | None:
    return getattr(g, "current_user_id", None)
