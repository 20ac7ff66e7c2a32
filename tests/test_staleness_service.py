import pytest
from datetime import datetime, timedelta

from taskboard.core.errors import Forbidden
from taskboard.models.task import Task, TaskStatus
from taskboard.schemas.task import TaskCreate
from taskboard.services.kanban_service import move_kanban
from taskboard.services.staleness_service import (
    is_stale_task,
    list_stale_tasks_for,
    notify_stale_tasks,
    snooze_task,
)
from taskboard.services.status_service import set_status
from taskboard.services.task_service import create_task
from fakes import FakeDirectory, FakeNotifier

ALICE = "alice@x.com"
BOB = "bob@x.com"
NOW = datetime(2026, 3, 10, 12, 0, 0)


def make_task(status="in_progress", days_since_change=4, snoozed_until=None):
    return Task(
        title="T",
        created_by=ALICE,
        status=status,
        last_status_change_at=NOW - timedelta(days=days_since_change),
        snoozed_until=snoozed_until,
    )


# ============ is_stale_task ============

def test_old_open_task_is_stale():
    assert is_stale_task(make_task(days_since_change=4), NOW)


def test_recent_task_is_not_stale():
    assert not is_stale_task(make_task(days_since_change=2), NOW)


def test_snoozed_task_is_not_stale():
    assert not is_stale_task(make_task(snoozed_until=NOW + timedelta(days=1)), NOW)


def test_expired_snooze_no_longer_protects():
    assert is_stale_task(make_task(snoozed_until=NOW - timedelta(hours=1)), NOW)


@pytest.mark.parametrize("status", ["done", "hidden"])
def test_closed_task_is_never_stale(status):
    assert not is_stale_task(make_task(status=status, days_since_change=400), NOW)


def test_missing_timestamp_is_not_stale():
    task = make_task()
    task.last_status_change_at = None
    assert not is_stale_task(task, NOW)


# ============ snooze ============

@pytest.fixture
def directory():
    return FakeDirectory(registered=[ALICE, BOB])


def test_snooze_clears_staleness(db, directory):
    """Tâche en cours inchangée depuis 5 jours: stale, puis plus après snooze"""
    first = create_task(db, TaskCreate(title="First", assignees=[BOB]), ALICE, directory, now=NOW - timedelta(days=6))
    task = create_task(db, TaskCreate(title="T", assignees=[BOB]), ALICE, directory, now=NOW - timedelta(days=6))
    move_kanban(db, first.id, TaskStatus.IN_PROGRESS, 0, BOB, now=NOW - timedelta(days=5))
    move_kanban(db, task.id, TaskStatus.IN_PROGRESS, 1, BOB, now=NOW - timedelta(days=5))
    task = db.query(Task).filter(Task.id == task.id).first()
    assert is_stale_task(task, NOW)
    status_before, position_before = task.status, task.position
    assert (status_before, position_before) == ("in_progress", 1)

    snoozed = snooze_task(db, task.id, BOB, now=NOW)

    # Le snooze ne touche ni au statut ni à la place dans la colonne
    assert snoozed.status == status_before
    assert snoozed.position == position_before
    assert snoozed.snoozed_until == NOW + timedelta(days=3)
    assert not is_stale_task(snoozed, NOW)
    assert is_stale_task(snoozed, NOW + timedelta(days=3, minutes=1))


def test_snooze_requires_assignment(db, directory):
    task = create_task(db, TaskCreate(title="T", assignees=[BOB]), ALICE, directory)
    with pytest.raises(Forbidden):
        snooze_task(db, task.id, ALICE)


# ============ listing & sweep ============

def test_list_stale_tasks_for_assignee(db, directory):
    old = create_task(db, TaskCreate(title="Old", assignees=[BOB]), ALICE, directory, now=NOW - timedelta(days=5))
    create_task(db, TaskCreate(title="Fresh", assignees=[BOB]), ALICE, directory, now=NOW - timedelta(days=1))
    done = create_task(db, TaskCreate(title="Done", assignees=[BOB]), ALICE, directory, now=NOW - timedelta(days=9))
    set_status(db, done.id, TaskStatus.DONE, ALICE, now=NOW - timedelta(days=9))

    assert [t.id for t in list_stale_tasks_for(db, BOB, NOW)] == [old.id]
    # Alice n'est pas assignée: rien à relancer pour elle
    assert list_stale_tasks_for(db, ALICE, NOW) == []


def test_notify_stale_tasks(db, directory, make_user):
    make_user(ALICE)
    make_user(BOB)
    make_user("pending@x.com", approved=False)
    task = create_task(db, TaskCreate(title="Old", assignees=[BOB]), ALICE, directory, now=NOW - timedelta(days=5))
    notifier = FakeNotifier()

    result = notify_stale_tasks(db, notifier, NOW)

    assert result == {"users": 2, "notified": 1, "errors": 0}
    assert notifier.sent[0][0] == BOB
    assert notifier.sent[0][1] == "task_stale"
    assert notifier.sent[0][2]["task_id"] == task.id
