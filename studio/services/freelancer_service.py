"""
Known-freelancer directory service.

The directory is a convenience cache for crew forms: whenever a freelance
participant is saved under a name the directory has never seen, a new entry
is created so the name/contact/company can be pre-filled next time.
Deduplication is by exact name match.
"""

import logging

from sqlalchemy import select

from studio.models import db
from studio.models.freelancer import Freelancer

logger = logging.getLogger(__name__)


def list_freelancers() -> list[dict]:
    """Return every directory entry ordered by name."""
    stmt = select(Freelancer).order_by(Freelancer.name, Freelancer.id)
    return [f.to_dict() for f in db.session.execute(stmt).scalars().all()]


def remember_freelancer(
    name: str,
    *,
    contact: str | None = None,
    company: str | None = None,
    location: str | None = None,
    created_by: int | None = None,
) -> Freelancer | None:
    """Add *name* to the directory unless an entry with that exact name exists.

    Flushes only; the caller owns the transaction.

    Returns:
        The newly created Freelancer, or None when the name was already known.
    """
    name = (name or "").strip()
    if not name:
        return None

    existing_stmt = select(Freelancer.id).where(Freelancer.name == name).limit(1)
    if db.session.execute(existing_stmt).scalar_one_or_none() is not None:
        return None

    entry = Freelancer(
        name=name,
        contact=contact or None,
        company=company or None,
        location=location or None,
        created_by=created_by,
    )
    db.session.add(entry)
    db.session.flush()
    logger.info("Freelancer remembered", extra={"freelancer_id": entry.id})
    return entry
