"""
Shooting Crew Reconciliation Service.

Makes the persisted ``shooting_crew`` rows of one shooting match the crew
selected in an edit session.

Internal participants (camper / additional / runner partitions):
    Each ``(shooting_id, role)`` partition is rebuilt wholesale: every
    persisted internal row of the partition is deleted and one fresh row is
    inserted per desired user id.  The rewrite is intentionally non-minimal;
    the end state equals the desired set whatever the previous state was,
    and rows that did not change still get new row ids.

Freelance participants:
    True diff, because their name/cost data is owned by the row.
      - entry without id          → insert
      - entry with id             → update name/cost/role/contact/company in place
      - id in removed list        → delete
    Every inserted or renamed freelancer is mirrored into the known-freelancer
    directory (exact-name dedup).

The whole reconciliation is one transaction: validation runs before the
first write, and a persistence failure rolls everything back.

Usage:
    from studio.services.crew_reconciler import CrewEditState, reconcile_crew

    state = CrewEditState.from_payload(request_json)
    summary = reconcile_crew(shooting_id, state, actor_id)
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from studio.core.exceptions import NotFoundError, ValidationError
from studio.models import db
from studio.models.auth import User
from studio.models.shooting import CREW_ROLES, CrewAssignment, ShootingSchedule
from studio.services.freelancer_service import remember_freelancer
from studio.utils.helpers import get_or_raise, parse_id_list

logger = logging.getLogger(__name__)

# payload key → crew role of the internal partition
INTERNAL_PARTITION_KEYS = {
    "campers": "camper",
    "additional": "additional",
    "runners": "runner",
}


# ── Edit state ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FreelanceEntry:
    """One freelance row as edited in the dialog.  ``id`` is None for new rows."""

    name: str
    role: str = "camper"
    cost: float = 0
    contact: str | None = None
    company: str | None = None
    id: int | None = None

    @classmethod
    def from_payload(cls, data: dict) -> "FreelanceEntry":
        if not isinstance(data, dict):
            raise ValueError("each freelancer must be an object")
        row_id = data.get("id")
        if row_id is not None and (isinstance(row_id, bool) or not isinstance(row_id, int)):
            raise ValueError("freelancer id must be an integer")
        cost = data.get("cost") or 0
        if isinstance(cost, bool) or not isinstance(cost, (int, float)):
            raise ValueError("freelancer cost must be a number")
        return cls(
            id=row_id,
            name=str(data.get("name") or "").strip(),
            role=str(data.get("role") or "camper"),
            cost=cost,
            contact=(data.get("contact") or None),
            company=(data.get("company") or None),
        )


@dataclass(frozen=True)
class CrewEditState:
    """The desired crew of one shooting, built once per edit session.

    Passed unchanged through validation and reconciliation.
    """

    campers: tuple[int, ...] = ()
    additional: tuple[int, ...] = ()
    runners: tuple[int, ...] = ()
    freelancers: tuple[FreelanceEntry, ...] = ()
    removed_freelancer_ids: tuple[int, ...] = field(default=())

    @classmethod
    def from_payload(cls, data: dict | None) -> "CrewEditState":
        """Build the state from a request body.

        Raises:
            ValueError: If the payload is malformed (wrong types).
        """
        data = data or {}
        freelancers = data.get("freelancers") or []
        if not isinstance(freelancers, list):
            raise ValueError("freelancers must be a list")
        return cls(
            campers=tuple(parse_id_list(data.get("campers"), "campers")),
            additional=tuple(parse_id_list(data.get("additional"), "additional")),
            runners=tuple(parse_id_list(data.get("runners"), "runners")),
            freelancers=tuple(FreelanceEntry.from_payload(f) for f in freelancers),
            removed_freelancer_ids=tuple(
                parse_id_list(data.get("removed_freelancer_ids"), "removed_freelancer_ids")
            ),
        )

    def internal_partitions(self) -> dict[str, tuple[int, ...]]:
        """Desired user ids keyed by crew role."""
        return {
            "camper": self.campers,
            "additional": self.additional,
            "runner": self.runners,
        }


def load_edit_state(shooting_id: int) -> CrewEditState:
    """Build the edit state that reproduces the currently persisted crew."""
    get_or_raise(ShootingSchedule, shooting_id, label="ShootingSchedule")
    rows = _crew_rows(shooting_id)

    internal: dict[str, list[int]] = {role: [] for role in CREW_ROLES}
    freelancers = []
    for row in rows:
        if row.is_freelance:
            freelancers.append(FreelanceEntry(
                id=row.id,
                name=row.freelance_name or "",
                role=row.role,
                cost=row.freelance_cost or 0,
                contact=row.freelance_contact,
                company=row.freelance_company,
            ))
        elif row.user_id is not None:
            internal.setdefault(row.role, []).append(row.user_id)

    return CrewEditState(
        campers=tuple(internal["camper"]),
        additional=tuple(internal["additional"]),
        runners=tuple(internal["runner"]),
        freelancers=tuple(freelancers),
    )


def get_crew(shooting_id: int) -> dict:
    """Return the persisted crew split by partition, ready for the UI."""
    rows = _crew_rows(shooting_id)
    crew = {"campers": [], "additional": [], "runners": [], "freelancers": []}
    role_key = {role: key for key, role in INTERNAL_PARTITION_KEYS.items()}
    for row in rows:
        if row.is_freelance:
            crew["freelancers"].append(row.to_dict())
        elif row.user_id is not None:
            crew[role_key.get(row.role, "additional")].append(row.user_id)
    return crew


# ── Validation ────────────────────────────────────────────────────────────────


def validate_edit_state(shooting_id: int, state: CrewEditState) -> None:
    """Reject an edit state before any write happens.

    Raises:
        ValidationError: Empty freelancer name, unknown role, negative cost,
            unknown user ids, or a row both updated and removed.
        NotFoundError: A freelancer id that is not a freelance row of this shooting.
    """
    errors: dict[str, str] = {}

    for i, entry in enumerate(state.freelancers):
        if not entry.name:
            errors[f"freelancers[{i}].name"] = "Freelancer name is required."
        if entry.role not in CREW_ROLES:
            errors[f"freelancers[{i}].role"] = f"Must be one of: {', '.join(CREW_ROLES)}."
        if entry.cost < 0:
            errors[f"freelancers[{i}].cost"] = "Cost cannot be negative."

    removed = set(state.removed_freelancer_ids)
    kept_ids = {e.id for e in state.freelancers if e.id is not None}
    if removed & kept_ids:
        errors["removed_freelancer_ids"] = (
            f"Rows {sorted(removed & kept_ids)} are both updated and removed."
        )

    wanted_users = {uid for ids in state.internal_partitions().values() for uid in ids}
    if wanted_users:
        known = set(
            db.session.execute(select(User.id).where(User.id.in_(wanted_users))).scalars().all()
        )
        missing = wanted_users - known
        if missing:
            errors["users"] = f"Unknown user ids: {sorted(missing)}"

    if errors:
        raise ValidationError("Crew validation failed", details=errors)

    if kept_ids:
        stmt = select(CrewAssignment.id).where(
            CrewAssignment.id.in_(kept_ids),
            CrewAssignment.shooting_id == shooting_id,
            CrewAssignment.is_freelance.is_(True),
        )
        found = set(db.session.execute(stmt).scalars().all())
        for row_id in sorted(kept_ids - found):
            raise NotFoundError(resource="Freelance crew row", resource_id=row_id)


# ── Reconciliation steps ──────────────────────────────────────────────────────


def replace_partition(shooting_id: int, role: str, user_ids) -> list[CrewAssignment]:
    """Rebuild one internal partition: delete every row, insert one per id.

    Duplicate ids collapse to a single row (first occurrence wins the order).
    Flushes only; the caller owns the transaction.
    """
    db.session.execute(
        delete(CrewAssignment).where(
            CrewAssignment.shooting_id == shooting_id,
            CrewAssignment.role == role,
            CrewAssignment.is_freelance.is_(False),
        )
    )

    rows = [
        CrewAssignment(shooting_id=shooting_id, role=role, is_freelance=False, user_id=uid)
        for uid in dict.fromkeys(user_ids)
    ]
    db.session.add_all(rows)
    db.session.flush()
    return rows


def reconcile_freelancers(
    shooting_id: int,
    entries,
    removed_ids,
    actor_id: int | None = None,
) -> dict:
    """Apply the freelance diff: insert new rows, update kept rows, delete removed ones.

    Flushes only; the caller owns the transaction.

    Returns:
        {"created": N, "updated": N, "deleted": N}
    """
    deleted = 0
    if removed_ids:
        result = db.session.execute(
            delete(CrewAssignment).where(
                CrewAssignment.id.in_(list(removed_ids)),
                CrewAssignment.shooting_id == shooting_id,
                CrewAssignment.is_freelance.is_(True),
            )
        )
        deleted = result.rowcount or 0

    created = updated = 0
    for entry in entries:
        if entry.id is not None:
            row = db.session.get(CrewAssignment, entry.id)
            if row is None or row.shooting_id != shooting_id or not row.is_freelance:
                raise NotFoundError(resource="Freelance crew row", resource_id=entry.id)
            renamed = row.freelance_name != entry.name
            row.freelance_name = entry.name
            row.freelance_cost = entry.cost
            row.role = entry.role
            row.freelance_contact = entry.contact
            row.freelance_company = entry.company
            updated += 1
            if renamed:
                remember_freelancer(
                    entry.name, contact=entry.contact, company=entry.company, created_by=actor_id,
                )
        else:
            db.session.add(CrewAssignment(
                shooting_id=shooting_id,
                role=entry.role,
                is_freelance=True,
                user_id=None,
                freelance_name=entry.name,
                freelance_cost=entry.cost,
                freelance_contact=entry.contact,
                freelance_company=entry.company,
            ))
            created += 1
            remember_freelancer(
                entry.name, contact=entry.contact, company=entry.company, created_by=actor_id,
            )

    db.session.flush()
    return {"created": created, "updated": updated, "deleted": deleted}


def reconcile_crew(
    shooting_id: int,
    state: CrewEditState,
    actor_id: int | None = None,
    *,
    commit: bool = True,
) -> dict:
    """Make the persisted crew of *shooting_id* equal *state*.

    Args:
        shooting_id: Owning shooting schedule.
        state: Desired crew.
        actor_id: Attributed as creator of new directory entries.
        commit: Commit at the end.  Pass False when the caller folds the
            reconciliation into a larger transaction.

    Returns:
        {"shooting_id", "internal": {role: count}, "freelancers": {...}}

    Raises:
        NotFoundError, ValidationError: before any write.
        SQLAlchemyError: after rolling the whole session back.
    """
    get_or_raise(ShootingSchedule, shooting_id, label="ShootingSchedule")
    validate_edit_state(shooting_id, state)

    try:
        internal = {}
        for role, user_ids in state.internal_partitions().items():
            internal[role] = len(replace_partition(shooting_id, role, user_ids))
        freelance = reconcile_freelancers(
            shooting_id, state.freelancers, state.removed_freelancer_ids, actor_id,
        )
        if commit:
            db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(
            "Crew reconciliation failed, rolled back",
            extra={"shooting_id": shooting_id, "actor_id": actor_id},
        )
        raise

    logger.info(
        "Crew reconciled",
        extra={"shooting_id": shooting_id, "actor_id": actor_id, "freelance_changes": freelance},
    )
    return {"shooting_id": shooting_id, "internal": internal, "freelancers": freelance}


# ── Private helpers ───────────────────────────────────────────────────────────


def _crew_rows(shooting_id: int) -> list[CrewAssignment]:
    stmt = (
        select(CrewAssignment)
        .where(CrewAssignment.shooting_id == shooting_id)
        .order_by(CrewAssignment.role, CrewAssignment.id)
    )
    return list(db.session.execute(stmt).scalars().all())
