# trackr/models.py
"""Task table and request/response schemas for the trackr API."""

import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from trackr.timeutil import now_iso

DEFAULT_TITLE = "Untitled Task"
DEFAULT_CATEGORY = "Uncategorized"


class TaskStatus(str, Enum):
    ACTIVE = "Active"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"

    @classmethod
    def parse(cls, raw: Any) -> Optional["TaskStatus"]:
        """Return the matching status, or None for missing/unknown values."""
        if isinstance(raw, cls):
            return raw
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def coerce(cls, raw: Any) -> "TaskPriority":
        """Map unknown or empty priorities to Medium."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


class Task(SQLModel, table=True):
    """Stored task record. Milestone timestamps are ISO-8601 strings."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    username: str = Field(index=True)
    title: str = Field(default=DEFAULT_TITLE, max_length=200)
    description: str = Field(default="")
    category: str = Field(default=DEFAULT_CATEGORY)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    due: Optional[str] = Field(default=None)
    time: Optional[str] = Field(default=None)
    status: TaskStatus = Field(default=TaskStatus.ACTIVE)
    completed: bool = Field(default=False)
    manual_status: bool = Field(default=False)
    created_at: str = Field(default_factory=now_iso, index=True)
    updated_at: str = Field(default_factory=now_iso)
    in_progress_at: Optional[str] = Field(default=None)
    completed_at: Optional[str] = Field(default=None)
    overdue_at: Optional[str] = Field(default=None)
    google_event_id: Optional[str] = Field(default=None)


class CamelModel(BaseModel):
    """Base schema speaking camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _bool_or_none(value: Any) -> Optional[bool]:
    # Only real booleans count as an explicit flag.
    return value if isinstance(value, bool) else None


class TaskCreate(CamelModel):
    """Schema for creating a task. Only the title is required."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due: Any = None
    time: Optional[str] = None
    tags: Any = None

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, v: Any) -> TaskPriority:
        return TaskPriority.coerce(v)


class TaskUpdate(CamelModel):
    """Partial update payload.

    Every member is optional; a member counts as supplied when it appears in
    ``model_fields_set``, so an explicit ``null`` is distinguishable from an
    omitted key.
    """
    status: Optional[TaskStatus] = None
    completed: Optional[bool] = None
    manual_status: Optional[bool] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due: Any = None
    time: Optional[str] = None
    tags: Any = None
    google_event_id: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v: Any) -> Optional[TaskStatus]:
        return TaskStatus.parse(v)

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, v: Any) -> TaskPriority:
        return TaskPriority.coerce(v)

    @field_validator("completed", "manual_status", mode="before")
    @classmethod
    def _strict_flag(cls, v: Any) -> Optional[bool]:
        return _bool_or_none(v)


class TaskRead(CamelModel):
    """Sanitized task as returned to clients and fed to analytics."""
    id: str
    username: str
    title: str = DEFAULT_TITLE
    description: str = ""
    category: str = DEFAULT_CATEGORY
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = []
    due: Optional[str] = None
    time: Optional[str] = None
    status: TaskStatus = TaskStatus.ACTIVE
    completed: bool = False
    manual_status: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    in_progress_at: Optional[str] = None
    completed_at: Optional[str] = None
    overdue_at: Optional[str] = None
    google_event_id: Optional[str] = None


class TaskEnvelope(BaseModel):
    task: TaskRead
    message: str


class TaskListEnvelope(BaseModel):
    tasks: list[TaskRead]
    count: int
    message: str


class TaskDeleted(CamelModel):
    message: str
    task_id: str
