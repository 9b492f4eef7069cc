# trackr/sanitize.py
"""Normalize stored task records before they leave the storage layer."""

import logging
from typing import Any, Mapping

from trackr.models import (
    DEFAULT_CATEGORY,
    DEFAULT_TITLE,
    TaskPriority,
    TaskRead,
    TaskStatus,
)
from trackr.timeutil import normalize_timestamp

logger = logging.getLogger(__name__)

DATE_FIELDS = ("due", "completed_at", "in_progress_at", "overdue_at", "created_at", "updated_at")


def _read(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def sanitize_task(record: Any) -> TaskRead:
    """Return a :class:`TaskRead` with defaults filled and dates canonicalized.

    *record* may be a :class:`~trackr.models.Task` row or a plain mapping
    keyed by attribute name. Unparsable dates become None.
    """
    dates: dict[str, Any] = {}
    for name in DATE_FIELDS:
        raw = _read(record, name)
        dates[name] = normalize_timestamp(raw)
        if raw and dates[name] is None:
            logger.warning("Dropping unparsable %s on task %s: %r", name, _read(record, "id"), raw)

    tags = _read(record, "tags")
    return TaskRead(
        id=str(_read(record, "id") or ""),
        username=_read(record, "username") or "",
        title=(_read(record, "title") or "").strip() or DEFAULT_TITLE,
        description=(_read(record, "description") or "").strip(),
        category=_read(record, "category") or DEFAULT_CATEGORY,
        priority=TaskPriority.coerce(_read(record, "priority")),
        tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
        time=_read(record, "time") or None,
        status=TaskStatus.parse(_read(record, "status")) or TaskStatus.ACTIVE,
        completed=bool(_read(record, "completed")),
        manual_status=bool(_read(record, "manual_status")),
        google_event_id=_read(record, "google_event_id"),
        **dates,
    )
