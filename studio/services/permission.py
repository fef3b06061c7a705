"""
Role-based authorization service.

The authorization collaborator for every gated mutation: given an actor id,
returns the actor's set of application roles.  Mutating services call
``check_any_role`` themselves; callers never pre-authorize on their behalf.

Usage:
    from studio.services.permission import check_any_role, PermissionDenied

    # Raises PermissionDenied if the actor holds none of the roles
    check_any_role(actor_id, {"hr", "super_admin"}, action="shooting.approve")

    # Boolean check
    if has_any_role(actor_id, {"super_admin"}):
        ...
"""

from studio.models import db
from studio.models.auth import UserRole


class PermissionDenied(Exception):
    """Raised when an actor lacks the role required for an action."""

    def __init__(self, user_id: int | None, action: str):
        super().__init__(f"User {user_id} does not have permission for '{action}'")
        self.user_id = user_id
        self.action = action


def get_user_roles(user_id: int | None) -> set[str]:
    """Return the set of role labels held by *user_id* (empty for unknown ids)."""
    if user_id is None:
        return set()
    rows = (
        db.session.query(UserRole.role)
        .filter(UserRole.user_id == user_id)
        .all()
    )
    return {role for (role,) in rows}


def has_any_role(user_id: int | None, allowed: set[str] | frozenset[str]) -> bool:
    """True if the actor's role set intersects *allowed*."""
    return bool(get_user_roles(user_id) & set(allowed))


def check_any_role(
    user_id: int | None,
    allowed: set[str] | frozenset[str],
    *,
    action: str,
) -> None:
    """
    Assert the actor holds at least one of *allowed*.

    Raises:
        PermissionDenied: If the actor's roles do not intersect the allow-list.
    """
    if not has_any_role(user_id, allowed):
        raise PermissionDenied(user_id, action)
