# trackr/routes/tasks.py
"""Task endpoints: CRUD, lifecycle updates, status sync and analytics."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from trackr.analytics import compute_analytics
from trackr.auth import get_current_username
from trackr.inference import stale_tasks
from trackr.lifecycle import plan_update
from trackr.models import (
    DEFAULT_CATEGORY,
    Task,
    TaskCreate,
    TaskDeleted,
    TaskEnvelope,
    TaskListEnvelope,
    TaskRead,
    TaskUpdate,
)
from trackr.repository import TaskRepository, get_task_repository
from trackr.sanitize import sanitize_task
from trackr.timeutil import normalize_due, now_iso, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _owned_task(repo: TaskRepository, task_id: str, username: str) -> Task:
    task = repo.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    if task.username != username:
        logger.info("User %s denied access to task %s", username, task_id)
        raise HTTPException(status_code=403, detail="Not authorized to access this task")
    return task


def _listing(tasks: list) -> TaskListEnvelope:
    return TaskListEnvelope(
        tasks=tasks,
        count=len(tasks),
        message="No tasks found" if not tasks else f"Found {len(tasks)} tasks",
    )


@router.get("")
def list_tasks(
    username: str = Depends(get_current_username),
    repo: TaskRepository = Depends(get_task_repository),
) -> TaskListEnvelope:
    """List the caller's tasks, newest first."""
    return _listing([sanitize_task(t) for t in repo.list_for_owner(username)])


@router.post("", status_code=201)
def create_task(
    body: TaskCreate,
    username: str = Depends(get_current_username),
    repo: TaskRepository = Depends(get_task_repository),
) -> TaskEnvelope:
    """Create a new Active task with no milestones."""
    title = (body.title or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")

    stamp = now_iso()
    task = Task(
        username=username,
        title=title,
        description=(body.description or "").strip(),
        category=(body.category or "").strip() or DEFAULT_CATEGORY,
        priority=body.priority,
        due=normalize_due(body.due),
        time=body.time or None,
        tags=[str(tag) for tag in body.tags] if isinstance(body.tags, list) else [],
        created_at=stamp,
        updated_at=stamp,
    )
    task = repo.add(task)
    logger.info("Created task %s for %s", task.id, username)
    return TaskEnvelope(task=sanitize_task(task), message="Task created successfully")


@router.get("/analytics")
def get_analytics(
    request: Request,
    username: str = Depends(get_current_username),
    repo: TaskRepository = Depends(get_task_repository),
) -> dict:
    """Completion analytics over all of the caller's tasks."""
    tasks = [sanitize_task(t) for t in repo.list_for_owner(username)]
    report = compute_analytics(tasks, now=utcnow(), tz=request.app.state.timezone)
    return {
        "analytics": report.model_dump(by_alias=True, mode="json"),
        "generatedAt": now_iso(),
    }


@router.post("/sync-status")
def sync_statuses(
    request: Request,
    username: str = Depends(get_current_username),
    repo: TaskRepository = Depends(get_task_repository),
) -> TaskListEnvelope:
    """Move tasks without a manual status to the status their due date implies."""
    now = utcnow()
    tasks = [sanitize_task(t) for t in repo.list_for_owner(username)]
    updated = []
    for snapshot, status in stale_tasks(tasks, now=now, tz=request.app.state.timezone):
        task = repo.get(snapshot.id)
        if task is None:
            continue
        change = TaskUpdate(status=status, manual_status=False)
        updated.append(sanitize_task(repo.update(task, plan_update(task, change, now=now))))
    logger.info("Synced %d task status(es) for %s", len(updated), username)
    return _listing(updated)


@router.get("/{task_id}")
def get_task(
    task_id: str,
    username: str = Depends(get_current_username),
    repo: TaskRepository = Depends(get_task_repository),
) -> TaskRead:
    """Get a single task by ID."""
    return sanitize_task(_owned_task(repo, task_id, username))


@router.api_route("/{task_id}", methods=["PATCH", "PUT"])
def update_task(
    task_id: str,
    body: TaskUpdate,
    username: str = Depends(get_current_username),
    repo: TaskRepository = Depends(get_task_repository),
) -> TaskEnvelope:
    """Apply a partial update through the lifecycle engine."""
    task = _owned_task(repo, task_id, username)
    task = repo.update(task, plan_update(task, body))
    return TaskEnvelope(task=sanitize_task(task), message="Task updated successfully")


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    username: str = Depends(get_current_username),
    repo: TaskRepository = Depends(get_task_repository),
) -> TaskDeleted:
    """Delete a task by ID."""
    task = _owned_task(repo, task_id, username)
    repo.delete(task)
    logger.info("Deleted task %s for %s", task_id, username)
    return TaskDeleted(message="Task deleted successfully", task_id=task_id)
