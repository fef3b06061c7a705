"""
Studio Management System
Shooting schedule domain models.

Models:
    - ShootingSchedule: a shooting request awaiting HR approval.
    - CrewAssignment: one row of the ``shooting_crew`` association table.

Crew rows are partitioned by ``(shooting_id, role)``. Internal rows reference
a user and carry nothing else; freelance rows carry their own name/cost data
and are identified only by their row id.
"""

from datetime import datetime, timezone

from studio.models import db

SHOOTING_STATUSES = {"pending", "approved", "rejected", "cancelled"}
CREW_ROLES = ("camper", "additional", "runner")


class ShootingSchedule(db.Model):
    __tablename__ = "shooting_schedules"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    scheduled_date = db.Column(db.Date, nullable=False)
    scheduled_time = db.Column(db.String(5), nullable=True, comment="HH:MM")
    location = db.Column(db.String(255), nullable=True)
    director = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    runner = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(
        db.String(20), nullable=False, default="pending",
        comment="pending | approved | rejected | cancelled",
    )
    task_id = db.Column(
        db.Integer, db.ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True
    )
    requested_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # set when the shooting is moved; status returns to pending for re-approval
    rescheduled_from = db.Column(db.Date, nullable=True)
    reschedule_reason = db.Column(db.Text, nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancel_reason = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    crew = db.relationship(
        "CrewAssignment", back_populates="shooting", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "scheduled_date": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "scheduled_time": self.scheduled_time,
            "location": self.location,
            "director": self.director,
            "runner": self.runner,
            "notes": self.notes,
            "status": self.status,
            "task_id": self.task_id,
            "requested_by": self.requested_by,
            "approved_by": self.approved_by,
            "rescheduled_from": self.rescheduled_from.isoformat() if self.rescheduled_from else None,
            "reschedule_reason": self.reschedule_reason,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancel_reason": self.cancel_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ShootingSchedule {self.id}: {self.title} [{self.status}]>"


class CrewAssignment(db.Model):
    __tablename__ = "shooting_crew"
    __table_args__ = (
        db.Index("idx_shooting_crew_partition", "shooting_id", "role", "is_freelance"),
    )

    id = db.Column(db.Integer, primary_key=True)
    shooting_id = db.Column(
        db.Integer,
        db.ForeignKey("shooting_schedules.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = db.Column(db.String(20), nullable=False, comment="camper | additional | runner")
    is_freelance = db.Column(db.Boolean, nullable=False, default=False)

    # internal participant
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )

    # freelance participant (owned, free text)
    freelance_name = db.Column(db.String(200), nullable=True)
    freelance_contact = db.Column(db.String(200), nullable=True)
    freelance_company = db.Column(db.String(200), nullable=True)
    freelance_cost = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    shooting = db.relationship("ShootingSchedule", back_populates="crew")

    def to_dict(self):
        d = {
            "id": self.id,
            "shooting_id": self.shooting_id,
            "role": self.role,
            "is_freelance": bool(self.is_freelance),
        }
        if self.is_freelance:
            d.update({
                "name": self.freelance_name,
                "contact": self.freelance_contact,
                "company": self.freelance_company,
                "cost": self.freelance_cost,
            })
        else:
            d["user_id"] = self.user_id
        return d

    def __repr__(self):
        who = self.freelance_name if self.is_freelance else f"user={self.user_id}"
        return f"<CrewAssignment {self.id}: shooting={self.shooting_id} {self.role} {who}>"
