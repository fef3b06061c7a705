"""
Studio Management System
Task model.
"""

from datetime import datetime, timezone

from studio.models import db

TASK_STATUSES = {"pending", "todo", "in_progress", "revise", "on_hold", "completed"}
TASK_PRIORITIES = {"low", "medium", "high"}


class Task(db.Model):
    """A unit of studio work; may be linked from a shooting request."""

    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default="")
    priority = db.Column(db.String(10), default="medium")
    status = db.Column(
        db.String(20), nullable=False, default="todo",
        comment="pending | todo | in_progress | revise | on_hold | completed",
    )
    due_date = db.Column(db.Date, nullable=True)
    created_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_to = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "status": self.status,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "created_by": self.created_by,
            "assigned_to": self.assigned_to,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Task {self.id}: {self.title} [{self.status}]>"
