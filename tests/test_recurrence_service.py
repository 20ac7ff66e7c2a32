import pytest
from datetime import datetime, timedelta

from taskboard.models.assignment import Assignment
from taskboard.models.task import Task, TaskStatus
from taskboard.schemas.task import TaskCreate
from taskboard.services.deadline_service import notify_deadlines
from taskboard.services.kanban_service import get_board
from taskboard.services.recurrence_service import (
    calculate_next_occurrence,
    regenerate_task,
    run_recurrence_sweep,
)
from taskboard.services.staleness_service import list_stale_tasks_for
from taskboard.services.status_service import set_status
from taskboard.services.task_service import create_task, list_tasks_for
from fakes import FakeDirectory, FakeNotifier

ALICE = "alice@x.com"
BOB = "bob@x.com"
DUE = datetime(2026, 1, 31, 9, 0, 0)


# ============ calculate_next_occurrence ============

@pytest.mark.parametrize("rule, expected", [
    ("DAILY", datetime(2026, 2, 1, 9, 0, 0)),
    ("every WEEKLY standup", datetime(2026, 2, 7, 9, 0, 0)),
    ("monthly", datetime(2026, 2, 28, 9, 0, 0)),
    ("YEARLY", datetime(2027, 1, 31, 9, 0, 0)),
])
def test_fallback_markers(rule, expected):
    assert calculate_next_occurrence(rule, DUE) == expected


def test_structured_rule():
    assert calculate_next_occurrence("FREQ=WEEKLY;BYDAY=MO", DUE) == datetime(2026, 2, 2, 9, 0, 0)


def test_structured_rule_with_prefix():
    assert calculate_next_occurrence("RRULE:FREQ=DAILY;INTERVAL=2", DUE) == datetime(2026, 2, 2, 9, 0, 0)


@pytest.mark.parametrize("rule", [
    "FREQ=DAILY",
    "FREQ=WEEKLY;BYDAY=SA",
    "FREQ=MONTHLY;BYMONTHDAY=31",
    "FREQ=YEARLY",
    "DAILY",
    "WEEKLY",
    "MONTHLY",
    "YEARLY",
])
def test_next_occurrence_is_strictly_after(rule):
    # DUE est un samedi, 31 du mois
    next_due = calculate_next_occurrence(rule, DUE)
    assert next_due is not None
    assert next_due > DUE


def test_exhausted_rule_falls_back_on_marker():
    # COUNT=1: la seule occurrence est DUE lui-même -> repli sur DAILY
    assert calculate_next_occurrence("FREQ=DAILY;COUNT=1", DUE) == DUE + timedelta(days=1)


@pytest.mark.parametrize("rule", [None, "", "whenever", "FREQ=SOMETIMES"])
def test_unusable_rule_gives_none(rule):
    assert calculate_next_occurrence(rule, DUE) is None


def test_no_due_date_gives_none():
    assert calculate_next_occurrence("DAILY", None) is None


# ============ regeneration ============

@pytest.fixture
def recurring(db):
    directory = FakeDirectory(registered=[ALICE, BOB])
    return create_task(
        db,
        TaskCreate(title="Weekly report", assignees=[BOB], is_recurring=True, recurrence_rule="WEEKLY", due_date=DUE),
        ALICE,
        directory
    )


def test_regenerate_spawns_child_and_moves_parent(db, recurring):
    set_status(db, recurring.id, TaskStatus.DONE, BOB)
    next_due = DUE + timedelta(days=7)

    child = regenerate_task(db, recurring, next_due)

    assert child.parent_task_id == recurring.id
    assert child.title == "Weekly report"
    assert child.status == "backlog"
    assert child.is_recurring is False
    assert child.due_date == next_due
    assert [(a.assignee, a.status) for a in child.assignments] == [(BOB, "backlog")]

    parent = db.query(Task).filter(Task.id == recurring.id).first()
    assert parent.due_date == next_due
    # La progression du parent n'est pas touchée
    parent_assignment = db.query(Assignment).filter(Assignment.task_id == parent.id).one()
    assert parent_assignment.status == "done"


def test_sweep_processes_due_roots_only(db, recurring):
    now = DUE + timedelta(hours=1)

    result = run_recurrence_sweep(db, now)

    assert result == {"processed": 1, "errors": 0, "skipped": 0, "total": 1}
    children = db.query(Task).filter(Task.parent_task_id == recurring.id).all()
    assert len(children) == 1

    # Le parent est maintenant dans le futur, l'enfant n'est pas récurrent
    again = run_recurrence_sweep(db, now)
    assert again["total"] == 0


def test_sweep_ignores_hidden_and_future(db, recurring):
    result = run_recurrence_sweep(db, DUE - timedelta(days=1))
    assert result["total"] == 0

    db.query(Task).filter(Task.id == recurring.id).update({"status": "hidden"})
    db.commit()
    result = run_recurrence_sweep(db, DUE + timedelta(days=1))
    assert result["total"] == 0


def test_sweep_skips_uncomputable_rule(db, recurring):
    db.query(Task).filter(Task.id == recurring.id).update({"recurrence_rule": "whenever"})
    db.commit()

    result = run_recurrence_sweep(db, DUE + timedelta(hours=1))

    assert result == {"processed": 0, "errors": 0, "skipped": 1, "total": 1}


def test_sweep_counts_errors_and_continues(db, recurring, monkeypatch):
    directory = FakeDirectory(registered=[ALICE, BOB])
    other = create_task(
        db,
        TaskCreate(title="Daily", is_recurring=True, recurrence_rule="DAILY", due_date=DUE + timedelta(minutes=5)),
        ALICE,
        directory
    )

    from taskboard.services import recurrence_service
    real_regenerate = recurrence_service.regenerate_task

    def flaky_regenerate(db, parent, next_due, now=None):
        if parent.id == recurring.id:
            raise RuntimeError("boom")
        return real_regenerate(db, parent, next_due, now)

    monkeypatch.setattr(recurrence_service, "regenerate_task", flaky_regenerate)

    result = run_recurrence_sweep(db, DUE + timedelta(hours=1))

    assert result == {"processed": 1, "errors": 1, "skipped": 0, "total": 2}
    assert db.query(Task).filter(Task.parent_task_id == other.id).count() == 1


def test_spawned_occurrence_replaces_root_in_reminders(db):
    """Après le sweep, seule l'occurrence enfant est relancée et affichée au Kanban"""
    due = datetime(2026, 3, 2, 9, 0, 0)
    directory = FakeDirectory(registered=[ALICE, BOB])
    root = create_task(
        db,
        TaskCreate(title="Daily check", assignees=[BOB], is_recurring=True, recurrence_rule="DAILY", due_date=due),
        ALICE,
        directory,
        now=due - timedelta(days=5)
    )
    # Pas encore d'occurrence: la racine est une tâche comme les autres
    assert [t.id for t in get_board(db, BOB)["backlog"]] == [root.id]

    now = due + timedelta(hours=1)
    run_recurrence_sweep(db, now)
    child = db.query(Task).filter(Task.parent_task_id == root.id).one()

    notifier = FakeNotifier()
    result = notify_deadlines(db, notifier, now)

    assert result["approaching"] == 1
    assert [(kind, payload["task_id"]) for _, kind, payload in notifier.sent] == [("deadline_approaching", child.id)]
    assert list_stale_tasks_for(db, BOB, now) == []
    assert [t.id for t in get_board(db, BOB)["backlog"]] == [child.id]
    # La racine reste listée pour que le créateur puisse modifier la règle
    assert {t.id for t in list_tasks_for(db, ALICE)} == {root.id, child.id}
