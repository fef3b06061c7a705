"""
Studio Management System
Known-freelancer directory.

Convenience table used to pre-fill crew forms. It is never read back to
validate crew rows; the names here are deduplicated by exact match only.
"""

from datetime import datetime, timezone

from studio.models import db


class Freelancer(db.Model):
    __tablename__ = "freelancers"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    contact = db.Column(db.String(200), nullable=True)
    company = db.Column(db.String(200), nullable=True)
    location = db.Column(db.String(200), nullable=True)
    created_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "company": self.company,
            "location": self.location,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
