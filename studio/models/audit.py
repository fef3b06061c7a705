"""
Studio Management System
Label history.

Every status or phase write made through the status gate leaves one
``AuditLog`` row behind.  Moving an event's status and phase in one action
produces two rows that share ``actor_user_id`` and ``timestamp``.  Rows are
never updated or deleted.
"""

from datetime import datetime, timezone

from studio.models import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("idx_audit_entity", "entity_type", "entity_id"),
        db.Index("idx_audit_actor", "actor_user_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(30), nullable=False, comment="task | event | meeting | shooting")
    # string so one column serves every entity table
    entity_id = db.Column(db.String(36), nullable=False)
    action = db.Column(db.String(60), nullable=False, comment="status_changed | phase_changed")
    field = db.Column(db.String(60), nullable=False, comment="status | phase")
    old_value = db.Column(db.String(60), nullable=True)
    new_value = db.Column(db.String(60), nullable=True)
    actor_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    timestamp = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    _FIELDS = (
        "id", "entity_type", "entity_id", "action", "field",
        "old_value", "new_value", "actor_user_id",
    )

    def to_dict(self) -> dict:
        d = {name: getattr(self, name) for name in self._FIELDS}
        d["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        return d

    def __repr__(self):
        return (
            f"<AuditLog {self.id}: {self.entity_type}/{self.entity_id} "
            f"{self.field} {self.old_value!r}->{self.new_value!r}>"
        )


def write_audit(
    *,
    entity_type: str,
    entity_id,
    action: str,
    field: str,
    old_value: str | None = None,
    new_value: str | None = None,
    actor_user_id: int | None = None,
    timestamp: datetime | None = None,
) -> AuditLog:
    """Add one history row and flush it.

    Never commits: the row belongs to the caller's transaction, so it is
    persisted exactly when the label change it records is.
    """
    row = AuditLog(
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        field=field,
        old_value=old_value,
        new_value=new_value,
        actor_user_id=actor_user_id,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    db.session.add(row)
    db.session.flush()
    return row
