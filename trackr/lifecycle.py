# trackr/lifecycle.py
"""Task lifecycle engine.

Turns a stored task plus a partial :class:`~trackr.models.TaskUpdate` into
the field map to persist. The status branch runs first, then the explicit
``completed`` flag branch, then a reconciliation pass keeps ``status``,
``completed`` and the milestone timestamps consistent:

- ``completed`` is true exactly when ``status`` is Completed, and
  ``completed_at`` is set exactly when ``completed`` is true.
- Overdue is never a manual status.
- Active clears every milestone.

Nothing here raises for odd input; unknown values have already been mapped
to safe defaults by the schema, and unparsable due dates become None.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from trackr.models import DEFAULT_CATEGORY, DEFAULT_TITLE, TaskStatus, TaskUpdate
from trackr.timeutil import normalize_due, to_iso, utcnow

logger = logging.getLogger(__name__)

MILESTONE_FIELDS = ("in_progress_at", "completed_at", "overdue_at")


def _manual_flag(update: TaskUpdate) -> bool:
    """Payload's manual flag, defaulting to True for user-driven changes."""
    return update.manual_status if update.manual_status is not None else True


def _descriptive_fields(update: TaskUpdate) -> dict[str, Any]:
    """Pass-through edits that carry no lifecycle meaning."""
    supplied = update.model_fields_set
    fields: dict[str, Any] = {}

    if "title" in supplied:
        fields["title"] = (update.title or "").strip() or DEFAULT_TITLE
    if "description" in supplied:
        fields["description"] = (update.description or "").strip()
    if "category" in supplied:
        fields["category"] = (update.category or "").strip() or DEFAULT_CATEGORY
    if "priority" in supplied and update.priority is not None:
        fields["priority"] = update.priority
    if "time" in supplied:
        fields["time"] = update.time
    if "google_event_id" in supplied:
        fields["google_event_id"] = update.google_event_id
    if "tags" in supplied:
        tags = update.tags if isinstance(update.tags, list) else []
        fields["tags"] = [str(tag) for tag in tags]
    if "due" in supplied:
        fields["due"] = normalize_due(update.due)
    if update.manual_status is not None:
        fields["manual_status"] = update.manual_status

    return fields


def _apply_status(task: Any, update: TaskUpdate, fields: dict[str, Any], stamp: str) -> None:
    new_status = update.status
    current = TaskStatus.parse(task.status)
    fields["status"] = new_status

    if new_status is TaskStatus.IN_PROGRESS:
        fields["in_progress_at"] = stamp
        fields["manual_status"] = _manual_flag(update)
    elif new_status is TaskStatus.COMPLETED:
        if current is not TaskStatus.COMPLETED:
            fields["completed"] = True
            fields["completed_at"] = stamp
            fields["manual_status"] = _manual_flag(update)
            if not task.in_progress_at:
                fields["in_progress_at"] = task.created_at or stamp
    elif new_status is TaskStatus.OVERDUE:
        if current is not TaskStatus.OVERDUE:
            fields["overdue_at"] = stamp
            fields["manual_status"] = False
    elif new_status is TaskStatus.ACTIVE:
        fields["completed"] = False
        for name in MILESTONE_FIELDS:
            fields[name] = None
        fields["manual_status"] = _manual_flag(update)


def _apply_completed_flag(task: Any, update: TaskUpdate, fields: dict[str, Any], stamp: str) -> None:
    fields["completed"] = update.completed
    if update.completed:
        # Checked against the state left by the status branch, so an Active
        # transition in the same payload re-stamps the completion.
        if not fields.get("completed_at", task.completed_at):
            fields["completed_at"] = stamp
            fields["status"] = TaskStatus.COMPLETED
            if not fields.get("in_progress_at", task.in_progress_at):
                fields["in_progress_at"] = task.created_at or stamp
    else:
        fields["status"] = TaskStatus.ACTIVE
        for name in MILESTONE_FIELDS:
            fields[name] = None


def _reconcile(task: Any, fields: dict[str, Any]) -> None:
    status = fields.get("status", TaskStatus.parse(task.status) or TaskStatus.ACTIVE)

    if status is TaskStatus.COMPLETED:
        if fields.get("completed", task.completed) and fields.get("completed_at", task.completed_at):
            return
        # Completed status arriving without a stamp, e.g. a stale record.
        fields["completed"] = True
        if not fields.get("completed_at", task.completed_at):
            fields["completed_at"] = fields["updated_at"]
        return

    if fields.get("completed", task.completed) or fields.get("completed_at", task.completed_at):
        fields["completed"] = False
        fields["completed_at"] = None
    if status is TaskStatus.OVERDUE:
        fields["manual_status"] = False


def plan_update(task: Any, update: TaskUpdate, now: Optional[datetime] = None) -> dict[str, Any]:
    """Compute the fields to persist for *update* applied to *task*.

    *task* is any object exposing the stored task attributes (``status``,
    ``completed``, ``created_at`` and the milestone timestamps). The returned
    map always contains ``updated_at`` and never ``id``, ``username`` or
    ``created_at``.
    """
    stamp = to_iso(now or utcnow())
    fields = _descriptive_fields(update)
    fields["updated_at"] = stamp

    if update.status is not None:
        _apply_status(task, update, fields, stamp)
    if update.completed is not None:
        _apply_completed_flag(task, update, fields, stamp)
    _reconcile(task, fields)

    logger.debug(
        "Planned task update %s: %s -> %s",
        getattr(task, "id", None), task.status, fields.get("status", task.status),
    )
    return fields


def apply_fields(task: Any, fields: dict[str, Any]) -> Any:
    """Write a planned field map onto *task* in place and return it."""
    for key, value in fields.items():
        setattr(task, key, value)
    return task
