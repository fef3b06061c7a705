"""
Studio Management System
Actor models.

Models:
    - User: a studio employee (profile) that can act on entities.
    - UserRole: one application role held by a user.
"""

from datetime import datetime, timezone

from studio.models import db

APP_ROLES = {
    "super_admin",
    "hr",
    "graphic_designer",
    "socmed_admin",
    "copywriter",
    "video_editor",
    "finance",
    "accounting",
    "marketing",
    "photographer",
    "director",
    "project_manager",
    "sales",
}


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False, unique=True)
    full_name = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(20), default="active")  # active, inactive
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user_roles = db.relationship(
        "UserRole", back_populates="user", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    @property
    def role_names(self) -> list[str]:
        """Sorted role names held by this user."""
        return sorted(ur.role for ur in self.user_roles.all())

    def to_dict(self, include_roles=False):
        d = {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_roles:
            d["roles"] = self.role_names
        return d

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"


class UserRole(db.Model):
    __tablename__ = "user_roles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role = db.Column(db.String(30), nullable=False, comment="one of APP_ROLES")
    assigned_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("user_id", "role", name="uq_user_role"),
    )

    user = db.relationship("User", back_populates="user_roles")
