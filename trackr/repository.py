# trackr/repository.py
"""Task storage primitives over a SQLModel session."""

from typing import Any, Optional

from fastapi import Depends
from sqlmodel import Session, select

from trackr.database import get_session
from trackr.lifecycle import apply_fields
from trackr.models import Task

# Never overwritten by an update.
IMMUTABLE_FIELDS = frozenset({"id", "username", "created_at"})


class TaskRepository:
    """Get / add / update / query-by-owner / delete for tasks.

    Writes are read-modify-write without locking; the last commit wins.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_owner(self, username: str) -> list[Task]:
        """All tasks owned by *username*, newest first."""
        statement = (
            select(Task)
            .where(Task.username == username)
            .order_by(Task.created_at.desc())
        )
        return list(self.session.exec(statement).all())

    def get(self, task_id: str) -> Optional[Task]:
        return self.session.get(Task, task_id)

    def add(self, task: Task) -> Task:
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        return task

    def update(self, task: Task, fields: dict[str, Any]) -> Task:
        """Merge *fields* into *task* and commit."""
        apply_fields(task, {k: v for k, v in fields.items() if k not in IMMUTABLE_FIELDS})
        return self.add(task)

    def delete(self, task: Task) -> None:
        self.session.delete(task)
        self.session.commit()


def get_task_repository(session: Session = Depends(get_session)) -> TaskRepository:
    """FastAPI dependency providing a repository for the request's session."""
    return TaskRepository(session)
