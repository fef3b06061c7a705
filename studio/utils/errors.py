"""JSON error bodies for the studio API.

Every error response has the shape ``{"error": str, "code": str, "details"?: dict}``
so the front-end can key its messages on ``code`` and attach ``details``
to form fields (``"freelancers[0].name"``, ``"scheduled_date"``, ...).

    from studio.utils.errors import api_error, field_errors, E

    return api_error(E.NOT_FOUND, "Shooting not found")
    return field_errors({"title": "Required."})
"""

from flask import jsonify


class E:
    """Error codes.  The HTTP status each one defaults to is in ``STATUS``."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"   # malformed / missing input
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"     # well-formed but rejected
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    FORBIDDEN = "ERR_FORBIDDEN"
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


STATUS = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHENTICATED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for a Flask view or error handler.

    ``status`` overrides the code's default; unknown codes fall back to 400.
    """
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or STATUS.get(code, 400)


def field_errors(errors: dict, code: str = E.VALIDATION_REQUIRED):
    """400 response listing per-field problems of a request body."""
    return api_error(code, "Validation failed", details=errors)
