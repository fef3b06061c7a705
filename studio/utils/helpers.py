"""Shared utility functions for services and blueprints.

get_or_raise:      primary-key lookup that raises NotFoundError
parse_date_input:  date parsing that raises ValueError on bad input
parse_id_list:     list-of-ints coercion for request payloads
text_field_errors: type check for optional free-text / label body keys
"""
import logging
from datetime import date, datetime

from studio.core.exceptions import NotFoundError
from studio.models import db

logger = logging.getLogger(__name__)


def get_or_raise(model, pk, label=None):
    """Fetch a model instance by primary key or raise NotFoundError."""
    obj = db.session.get(model, pk)
    if obj is None:
        raise NotFoundError(resource=label or model.__name__, resource_id=pk)
    return obj


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Supports: YYYY-MM-DD, DD.MM.YYYY, date objects.  Empty input → None.
    """
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        try:
            return datetime.strptime(str(value), "%d.%m.%Y").date()
        except ValueError as exc:
            raise ValueError(
                "Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY."
            ) from exc


def parse_id_list(value, field: str) -> list[int]:
    """Coerce a JSON list of ids into ``list[int]``.

    Raises ValueError naming *field* when the value is not a list of integers.
    ``None`` is treated as an empty list.
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field} must be a list of user ids")
    ids = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            raise ValueError(f"{field} must be a list of user ids")
        ids.append(item)
    return ids


def text_field_errors(data: dict, keys) -> dict[str, str]:
    """Per-field errors for *keys* present in *data* with a non-string value.

    Labels such as ``status`` or ``priority`` are later matched against closed
    sets, so a list or object must be rejected here as malformed input.
    """
    return {
        key: "Must be a string."
        for key in keys
        if data.get(key) is not None and not isinstance(data[key], str)
    }
