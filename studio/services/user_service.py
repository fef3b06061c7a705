"""
User Service: employee profiles and role assignment.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import delete, select

from studio.core.exceptions import ConflictError, ValidationError
from studio.models import db
from studio.models.auth import APP_ROLES, User, UserRole
from studio.services.permission import check_any_role, get_user_roles
from studio.utils.helpers import get_or_raise

logger = logging.getLogger(__name__)

USER_ADMIN_ROLES = frozenset({"super_admin", "hr"})
ROLE_ADMIN_ROLES = frozenset({"super_admin"})


def _normalize_roles(role_names) -> list[str]:
    roles = list(dict.fromkeys(role_names or []))
    unknown = [r for r in roles if r not in APP_ROLES]
    if unknown:
        raise ValidationError(
            f"Unknown roles: {', '.join(unknown)}",
            details={"roles": f"Must be drawn from: {', '.join(sorted(APP_ROLES))}"},
        )
    return roles


# ═══════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════
def create_user(
    email: str,
    full_name: str,
    role_names: list[str] | None = None,
    *,
    actor_id: int | None = None,
    skip_permission: bool = False,
) -> User:
    """Create an employee profile with its roles.

    ``skip_permission`` is for the ``create-admin`` CLI bootstrap only.
    """
    if not skip_permission:
        check_any_role(actor_id, USER_ADMIN_ROLES, action="user.create")

    try:
        email = validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": str(e)})

    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("full_name is required", details={"full_name": "Required."})

    roles = _normalize_roles(role_names)
    if "super_admin" in roles and not skip_permission:
        check_any_role(actor_id, ROLE_ADMIN_ROLES, action="user.grant_super_admin")

    existing = db.session.execute(select(User.id).where(User.email == email)).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(resource="User", field="email", value=email)

    user = User(email=email, full_name=full_name, status="active")
    db.session.add(user)
    db.session.flush()  # need user.id before assigning roles

    for role in roles:
        db.session.add(UserRole(user_id=user.id, role=role))

    db.session.commit()
    logger.info("User created", extra={"user_id": user.id, "actor_id": actor_id})
    return user


def list_users(include_inactive: bool = False) -> list[User]:
    stmt = select(User).order_by(User.full_name, User.id)
    if not include_inactive:
        stmt = stmt.where(User.status == "active")
    return list(db.session.execute(stmt).scalars().all())


def set_user_roles(user_id: int, role_names: list[str], *, actor_id: int | None) -> list[str]:
    """Replace the full role set of *user_id*.  super_admin only."""
    check_any_role(actor_id, ROLE_ADMIN_ROLES, action="user.set_roles")
    user = get_or_raise(User, user_id, label="User")
    roles = _normalize_roles(role_names)

    db.session.execute(delete(UserRole).where(UserRole.user_id == user.id))
    for role in roles:
        db.session.add(UserRole(user_id=user.id, role=role))
    db.session.commit()

    logger.info(
        "User roles replaced",
        extra={"user_id": user.id, "actor_id": actor_id, "roles": roles},
    )
    return sorted(get_user_roles(user.id))
