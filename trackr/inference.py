# trackr/inference.py
"""Derive a task's status from its due date and time of day."""

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from trackr.models import TaskRead, TaskStatus
from trackr.timeutil import at_local, local_day, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

# A task turns Overdue at this local time on the day after it was due.
OVERDUE_GRACE = time(5, 0)


def _parse_clock(raw: Optional[str]) -> time:
    """Read ``HH:MM`` into a time; anything else means midnight."""
    if not raw:
        return time(0, 0)
    try:
        hours, minutes = raw.strip().split(":")[:2]
        return time(int(hours), int(minutes))
    except ValueError:
        return time(0, 0)


def infer_status(
    task: TaskRead,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = timezone.utc,
) -> TaskStatus:
    """Status a task should have at *now* if nobody had set it by hand.

    A manual status wins unless it is Overdue. Otherwise: completed tasks
    are Completed, undated tasks Active, and dated tasks move to In Progress
    at their due date and time and to Overdue at 05:00 the next morning.
    Days are taken in *tz*; ``tz=None`` means the server's local zone. Due
    dates too close to the calendar limits to place in *tz* count as Active.
    """
    if task.manual_status and task.status is not TaskStatus.OVERDUE:
        return task.status
    if task.completed:
        return TaskStatus.COMPLETED

    due = parse_timestamp(task.due)
    due_day = local_day(due, tz) if due is not None else None
    if due_day is None:
        return TaskStatus.ACTIVE

    now = now or utcnow()
    if due_day < date.max:
        overdue_from = at_local(due_day + timedelta(days=1), OVERDUE_GRACE, tz)
        if overdue_from is not None and now >= overdue_from:
            return TaskStatus.OVERDUE
    in_progress_from = at_local(due_day, _parse_clock(task.time), tz)
    if in_progress_from is not None and now >= in_progress_from:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.ACTIVE


def stale_tasks(
    tasks: list[TaskRead],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = timezone.utc,
) -> list[tuple[TaskRead, TaskStatus]]:
    """Tasks without a manual status whose stored status no longer matches."""
    changes = []
    for task in tasks:
        if task.manual_status and task.status is not TaskStatus.OVERDUE:
            continue
        inferred = infer_status(task, now=now, tz=tz)
        if inferred is not task.status:
            changes.append((task, inferred))
    logger.debug("Found %d task(s) with stale status", len(changes))
    return changes
