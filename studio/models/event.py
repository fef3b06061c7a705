"""
Studio Management System
Event domain models.

Models:
    - Event: a client event with a status and a production phase.
    - EventCrew: one crew member (internal user or freelancer) on an event.
"""

from datetime import datetime, timezone

from studio.models import db

EVENT_STATUSES = {"planning", "preparation", "on_going", "done", "cancelled"}
EVENT_PHASES = {"pre_event", "production", "execution", "post_event"}
EVENT_TYPES = {"launching", "activation", "performance", "seminar", "campaign", "other"}

CREW_TYPES = {"internal", "freelancer"}
CREW_STATUSES = {"pending", "confirmed", "cancelled"}


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    event_type = db.Column(db.String(30), default="other")
    status = db.Column(
        db.String(20), nullable=False, default="planning",
        comment="planning | preparation | on_going | done | cancelled",
    )
    current_phase = db.Column(
        db.String(20), nullable=False, default="pre_event",
        comment="pre_event | production | execution | post_event",
    )
    location = db.Column(db.String(255), nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    pic_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    crew = db.relationship(
        "EventCrew", back_populates="event", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "event_type": self.event_type,
            "status": self.status,
            "current_phase": self.current_phase,
            "location": self.location,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "pic_id": self.pic_id,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Event {self.id}: {self.name} [{self.status}/{self.current_phase}]>"


class EventCrew(db.Model):
    __tablename__ = "event_crew"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(
        db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    crew_type = db.Column(db.String(20), nullable=False, default="internal")
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    freelancer_name = db.Column(db.String(200), nullable=True)
    freelancer_contact = db.Column(db.String(200), nullable=True)
    freelancer_company = db.Column(db.String(200), nullable=True)
    freelancer_location = db.Column(db.String(200), nullable=True)
    role = db.Column(db.String(100), nullable=False)
    fee = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, default="")
    status = db.Column(db.String(20), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    event = db.relationship("Event", back_populates="crew")

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "crew_type": self.crew_type,
            "user_id": self.user_id,
            "freelancer_name": self.freelancer_name,
            "freelancer_contact": self.freelancer_contact,
            "freelancer_company": self.freelancer_company,
            "freelancer_location": self.freelancer_location,
            "role": self.role,
            "fee": self.fee,
            "notes": self.notes,
            "status": self.status,
        }
