# trackr/analytics.py
"""Completion analytics over a user's sanitized task list.

Pure computation: no storage access and no mutation of the input. Calendar
days (streak, trends) are taken in the zone passed by the caller.
"""

import math
from collections import Counter
from datetime import date, datetime, timedelta, timezone, tzinfo
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

from pydantic import ConfigDict, field_serializer, field_validator

from trackr.models import (
    DEFAULT_CATEGORY,
    CamelModel,
    TaskPriority,
    TaskRead,
    TaskStatus,
)
from trackr.timeutil import local_day, parse_timestamp, utcnow

MS_PER_DAY = 1000 * 60 * 60 * 24
WEEKLY_WINDOW = 7
MONTHLY_WINDOW = 30


class AnalyticsSummary(CamelModel):
    model_config = ConfigDict(frozen=True)

    total: int
    completed: int
    overdue: int
    in_progress: int
    active: int
    completion_rate: int


_COUNT_MAPS = (
    "status_distribution",
    "category_distribution",
    "priority_distribution",
    "weekly_trend",
    "monthly_trend",
)


class TaskAnalytics(CamelModel):
    """Read-only analytics report. ``tasks`` is the input passed through as-is.

    Count maps are exposed as read-only mappings and the task list as a
    tuple; both serialize as plain JSON objects and arrays.
    """
    model_config = ConfigDict(frozen=True)

    summary: AnalyticsSummary
    status_distribution: Mapping[str, int]
    category_distribution: Mapping[str, int]
    priority_distribution: Mapping[str, int]
    average_completion_time: int
    streak: int
    weekly_trend: Mapping[str, int]
    monthly_trend: Mapping[str, int]
    tasks: tuple[TaskRead, ...]

    @field_validator(*_COUNT_MAPS)
    @classmethod
    def _read_only(cls, v: Mapping[str, int]) -> Mapping[str, int]:
        return MappingProxyType(dict(v))

    @field_serializer(*_COUNT_MAPS)
    def _plain_dict(self, v: Mapping[str, int]) -> dict[str, int]:
        return dict(v)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def summarize(tasks: Sequence[TaskRead]) -> AnalyticsSummary:
    total = len(tasks)
    completed = sum(1 for t in tasks if t.completed)
    return AnalyticsSummary(
        total=total,
        completed=completed,
        overdue=sum(1 for t in tasks if t.status == TaskStatus.OVERDUE),
        in_progress=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        active=sum(1 for t in tasks if t.status == TaskStatus.ACTIVE),
        completion_rate=_round_half_up(completed / total * 100) if total else 0,
    )


def _label(value: Any) -> str:
    return value.value if isinstance(value, (TaskStatus, TaskPriority)) else str(value)


def distributions(tasks: Sequence[TaskRead]) -> tuple[dict[str, int], dict[str, int], dict[str, int]]:
    """Frequency maps keyed by status, category and priority."""
    statuses = Counter(_label(t.status or TaskStatus.ACTIVE) for t in tasks)
    categories = Counter(t.category or DEFAULT_CATEGORY for t in tasks)
    priorities = Counter(_label(t.priority or TaskPriority.MEDIUM) for t in tasks)
    return dict(statuses), dict(categories), dict(priorities)


def _completions(tasks: Sequence[TaskRead]) -> list[tuple[TaskRead, datetime]]:
    completions = []
    for task in tasks:
        if not task.completed:
            continue
        finished = parse_timestamp(task.completed_at)
        if finished is not None:
            completions.append((task, finished))
    return completions


def average_completion_days(tasks: Sequence[TaskRead]) -> int:
    """Mean time from start (in-progress, else created) to completion, in whole days."""
    durations = []
    for task, finished in _completions(tasks):
        started = parse_timestamp(task.in_progress_at or task.created_at)
        if started is None:
            continue
        durations.append((finished - started) / timedelta(milliseconds=1))
    if not durations:
        return 0
    return _round_half_up(sum(durations) / len(durations) / MS_PER_DAY)


def completion_streak(completed_days: set[date], today: date) -> int:
    """Consecutive days ending today with at least one completion.

    A day without completions today means no streak, however long the run
    that ended yesterday.
    """
    streak = 0
    day = today
    while day in completed_days:
        streak += 1
        if day == date.min:
            break
        day -= timedelta(days=1)
    return streak


def completion_trend(completed_days: Counter, today: date, window: int) -> dict[str, int]:
    """Completions per day over the last *window* days, oldest first."""
    trend = {}
    for offset in range(window - 1, -1, -1):
        day = today - timedelta(days=offset)
        trend[day.isoformat()] = 0
    for day, count in completed_days.items():
        key = day.isoformat()
        if key in trend:
            trend[key] += count
    return trend


def compute_analytics(
    tasks: Sequence[TaskRead],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = timezone.utc,
) -> TaskAnalytics:
    """Build the analytics report for one user's tasks.

    *now* defaults to the current time and *tz* to UTC; ``tz=None`` buckets
    days in the server's local zone. Completions whose day cannot be placed
    in *tz* (calendar limits) are left out of the streak and trends.
    """
    now = now or utcnow()
    today = local_day(now, tz) or now.date()

    status_dist, category_dist, priority_dist = distributions(tasks)
    days = (local_day(finished, tz) for _, finished in _completions(tasks))
    per_day = Counter(day for day in days if day is not None)

    return TaskAnalytics(
        summary=summarize(tasks),
        status_distribution=status_dist,
        category_distribution=category_dist,
        priority_distribution=priority_dist,
        average_completion_time=average_completion_days(tasks),
        streak=completion_streak(set(per_day), today),
        weekly_trend=completion_trend(per_day, today, WEEKLY_WINDOW),
        monthly_trend=completion_trend(per_day, today, MONTHLY_WINDOW),
        tasks=tuple(tasks),
    )
