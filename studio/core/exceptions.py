"""
Errors raised by the studio services.

The service layer never builds HTTP responses; it raises one of these and
``studio.create_app`` turns it into JSON:

    NotFoundError     404  unknown shooting / event / task / meeting / crew row
    ValidationError   422  request understood but refused (bad label, empty
                           freelancer name, unknown crew user, ...)
    ConflictError     409  duplicate user e-mail

Permission failures are ``studio.services.permission.PermissionDenied`` (403).

    raise NotFoundError("ShootingSchedule", 42)
    raise ValidationError("Crew validation failed", details={"freelancers[0].name": "Required."})
"""


class NotFoundError(Exception):
    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        where = f" id={resource_id}" if resource_id is not None else ""
        super().__init__(f"{resource}{where} not found")


class ValidationError(Exception):
    """Business-rule rejection.

    Services raise it before their first write, so nothing is left half
    applied.  ``details`` maps a body field (``"scheduled_time"``,
    ``"freelancers[2].cost"``) to its problem and is returned to the client.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")
