"""Tests for the task lifecycle engine."""

from datetime import datetime, timedelta, timezone

import pytest

from trackr.lifecycle import apply_fields, plan_update
from trackr.models import Task, TaskStatus, TaskUpdate

CREATED = "2026-10-01T09:00:00.000Z"
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
NOW_ISO = "2026-10-19T12:00:00.000Z"


def make_task(**overrides) -> Task:
    fields = {
        "id": "t1",
        "username": "alice",
        "title": "Write report",
        "created_at": CREATED,
        "updated_at": CREATED,
    }
    fields.update(overrides)
    return Task(**fields)


def update(**payload) -> TaskUpdate:
    """Build an update the way the API does, from a camelCase body."""
    return TaskUpdate.model_validate(payload)


def assert_consistent(task: Task) -> None:
    assert task.completed == (task.status == TaskStatus.COMPLETED)
    assert (task.completed_at is not None) == task.completed
    if task.status == TaskStatus.OVERDUE:
        assert task.manual_status is False


class TestStatusBranch:
    def test_in_progress_stamps_and_marks_manual(self):
        fields = plan_update(make_task(), update(status="In Progress"), now=NOW)
        assert fields["status"] is TaskStatus.IN_PROGRESS
        assert fields["in_progress_at"] == NOW_ISO
        assert fields["manual_status"] is True
        assert "completed" not in fields

    def test_in_progress_always_overwrites(self):
        task = make_task(status=TaskStatus.IN_PROGRESS, in_progress_at=CREATED)
        fields = plan_update(task, update(status="In Progress"), now=NOW)
        assert fields["in_progress_at"] == NOW_ISO

    def test_in_progress_respects_manual_status_override(self):
        fields = plan_update(make_task(), update(status="In Progress", manualStatus=False), now=NOW)
        assert fields["manual_status"] is False

    def test_completed_backfills_in_progress_from_created(self):
        fields = plan_update(make_task(), update(status="Completed"), now=NOW)
        assert fields["completed"] is True
        assert fields["completed_at"] == NOW_ISO
        assert fields["in_progress_at"] == CREATED
        assert fields["manual_status"] is True

    def test_completed_backfills_now_without_created(self):
        task = make_task(created_at=None)
        fields = plan_update(task, update(status="Completed"), now=NOW)
        assert fields["in_progress_at"] == NOW_ISO

    def test_completed_keeps_existing_in_progress(self):
        task = make_task(status=TaskStatus.IN_PROGRESS, in_progress_at="2026-10-10T00:00:00.000Z")
        fields = plan_update(task, update(status="Completed"), now=NOW)
        assert "in_progress_at" not in fields

    def test_completed_twice_does_not_restamp(self):
        task = make_task()
        apply_fields(task, plan_update(task, update(status="Completed"), now=NOW))
        later = NOW + timedelta(hours=3)
        fields = plan_update(task, update(status="Completed"), now=later)
        apply_fields(task, fields)
        assert task.completed_at == NOW_ISO
        assert task.in_progress_at == CREATED
        assert "completed_at" not in fields

    def test_overdue_forces_automatic(self):
        fields = plan_update(make_task(), update(status="Overdue", manualStatus=True), now=NOW)
        assert fields["overdue_at"] == NOW_ISO
        assert fields["manual_status"] is False

    def test_overdue_is_not_restamped(self):
        task = make_task(status=TaskStatus.OVERDUE, overdue_at=CREATED)
        fields = plan_update(task, update(status="Overdue"), now=NOW)
        assert "overdue_at" not in fields

    def test_repeated_overdue_still_never_manual(self):
        task = make_task(status=TaskStatus.OVERDUE, overdue_at=CREATED)
        fields = plan_update(task, update(status="Overdue", manualStatus=True), now=NOW)
        assert fields["manual_status"] is False

    def test_active_clears_everything(self):
        task = make_task(
            status=TaskStatus.COMPLETED,
            completed=True,
            completed_at=CREATED,
            in_progress_at=CREATED,
            overdue_at=CREATED,
        )
        fields = plan_update(task, update(status="Active"), now=NOW)
        assert fields["completed"] is False
        assert fields["completed_at"] is None
        assert fields["overdue_at"] is None
        assert fields["in_progress_at"] is None
        assert fields["manual_status"] is True

    def test_leaving_completed_clears_completion(self):
        task = make_task(status=TaskStatus.COMPLETED, completed=True, completed_at=CREATED)
        apply_fields(task, plan_update(task, update(status="In Progress"), now=NOW))
        assert task.completed is False
        assert task.completed_at is None
        assert_consistent(task)

    def test_unknown_status_is_ignored(self):
        fields = plan_update(make_task(), update(status="Someday"), now=NOW)
        assert "status" not in fields
        assert fields["updated_at"] == NOW_ISO


class TestCompletedFlag:
    def test_completed_true_marks_complete(self):
        fields = plan_update(make_task(), update(completed=True), now=NOW)
        assert fields["status"] is TaskStatus.COMPLETED
        assert fields["completed_at"] == NOW_ISO
        assert fields["in_progress_at"] == CREATED

    def test_completed_true_on_completed_task_keeps_stamp(self):
        task = make_task(status=TaskStatus.COMPLETED, completed=True, completed_at=CREATED)
        fields = plan_update(task, update(completed=True), now=NOW)
        assert "completed_at" not in fields

    def test_completed_false_resets(self):
        task = make_task(
            status=TaskStatus.COMPLETED,
            completed=True,
            completed_at=CREATED,
            in_progress_at=CREATED,
        )
        fields = plan_update(task, update(completed=False), now=NOW)
        assert fields["status"] is TaskStatus.ACTIVE
        assert fields["completed"] is False
        assert fields["completed_at"] is None
        assert fields["in_progress_at"] is None
        assert fields["overdue_at"] is None

    def test_non_boolean_completed_is_ignored(self):
        fields = plan_update(make_task(), update(completed="yes"), now=NOW)
        assert "completed" not in fields
        assert "status" not in fields

    def test_completed_flag_overrides_explicit_status(self):
        fields = plan_update(make_task(), update(status="In Progress", completed=True), now=NOW)
        assert fields["status"] is TaskStatus.COMPLETED
        assert fields["completed"] is True

    def test_active_with_completed_true_restamps(self):
        task = make_task(status=TaskStatus.COMPLETED, completed=True, completed_at=CREATED)
        apply_fields(task, plan_update(task, update(status="Active", completed=True), now=NOW))
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at == NOW_ISO
        assert_consistent(task)


class TestDescriptiveFields:
    def test_updated_at_always_refreshed(self):
        fields = plan_update(make_task(), update(), now=NOW)
        assert fields == {"updated_at": NOW_ISO}

    def test_unparsable_due_becomes_none(self):
        fields = plan_update(make_task(), update(due="not a date"), now=NOW)
        assert fields["due"] is None

    @pytest.mark.parametrize("due", ["9999-12-31T23:00:00-05:00", "0001-01-01T00:00:00+01:00"])
    def test_due_outside_calendar_becomes_none(self, due):
        fields = plan_update(make_task(), update(due=due), now=NOW)
        assert fields["due"] is None
        assert fields["updated_at"] == NOW_ISO

    def test_date_only_due_is_normalized(self):
        fields = plan_update(make_task(), update(due="2026-10-25"), now=NOW)
        assert fields["due"] == "2026-10-25T00:00:00.000Z"

    def test_blank_title_falls_back(self):
        fields = plan_update(make_task(), update(title="   "), now=NOW)
        assert fields["title"] == "Untitled Task"

    def test_tags_must_be_a_list(self):
        assert plan_update(make_task(), update(tags="urgent"), now=NOW)["tags"] == []
        assert plan_update(make_task(), update(tags=["a", "b"]), now=NOW)["tags"] == ["a", "b"]

    def test_identity_fields_never_planned(self):
        fields = plan_update(make_task(), update(title="New"), now=NOW)
        assert not {"id", "username", "created_at"} & set(fields)


@pytest.mark.parametrize("start", list(TaskStatus))
@pytest.mark.parametrize(
    "payload",
    [
        {"status": "Active"},
        {"status": "In Progress"},
        {"status": "Completed"},
        {"status": "Overdue"},
        {"completed": True},
        {"completed": False},
        {"status": "Overdue", "completed": True},
        {"status": "Completed", "completed": False},
    ],
)
def test_invariants_hold_after_any_update(start, payload):
    done = start == TaskStatus.COMPLETED
    task = make_task(
        status=start,
        completed=done,
        completed_at=CREATED if done else None,
        in_progress_at=CREATED if done else None,
    )
    apply_fields(task, plan_update(task, update(**payload), now=NOW))
    assert_consistent(task)
    if task.status == TaskStatus.ACTIVE:
        assert task.in_progress_at is None
        assert task.overdue_at is None
