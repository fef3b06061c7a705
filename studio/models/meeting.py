"""
Studio Management System
Meeting models.
"""

from datetime import datetime, timezone

from studio.models import db

MEETING_STATUSES = {"scheduled", "completed", "cancelled"}
MEETING_MODES = {"online", "offline"}
PARTICIPANT_RESPONSES = {"accepted", "rejected"}


class Meeting(db.Model):
    __tablename__ = "meetings"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    meeting_date = db.Column(db.Date, nullable=False)
    meeting_time = db.Column(db.String(5), nullable=True, comment="HH:MM")
    mode = db.Column(db.String(10), default="offline")
    location = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, default="")
    is_confidential = db.Column(db.Boolean, default=False)
    status = db.Column(
        db.String(20), nullable=False, default="scheduled",
        comment="scheduled | completed | cancelled",
    )
    created_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    participants = db.relationship(
        "MeetingParticipant", back_populates="meeting", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_participants=False):
        d = {
            "id": self.id,
            "title": self.title,
            "meeting_date": self.meeting_date.isoformat() if self.meeting_date else None,
            "meeting_time": self.meeting_time,
            "mode": self.mode,
            "location": self.location,
            "notes": self.notes,
            "is_confidential": bool(self.is_confidential),
            "status": self.status,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_participants:
            d["participants"] = [p.to_dict() for p in self.participants.all()]
        return d


class MeetingParticipant(db.Model):
    __tablename__ = "meeting_participants"

    id = db.Column(db.Integer, primary_key=True)
    meeting_id = db.Column(
        db.Integer, db.ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status = db.Column(db.String(20), nullable=False, default="pending")
    responded_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("meeting_id", "user_id", name="uq_meeting_participant"),
    )

    meeting = db.relationship("Meeting", back_populates="participants")

    def to_dict(self):
        return {
            "id": self.id,
            "meeting_id": self.meeting_id,
            "user_id": self.user_id,
            "status": self.status,
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
        }
