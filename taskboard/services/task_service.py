"""Task service: create / read / update / soft delete, with authorization checks"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, Query, aliased

from taskboard.core.errors import DependencyFailure, Forbidden, NotFound, ValidationError
from taskboard.core.ports import Notifier, TeamDirectory
from taskboard.models.assignment import Assignment, AssignmentStatus
from taskboard.models.task import Task, TaskStatus
from taskboard.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from taskboard.services.assignment_service import (
    expand_assignees,
    normalize_identity,
    validate_assignees,
)
from taskboard.services.notification_service import notify_safely
from taskboard.services.recurrence_service import calculate_next_occurrence

logger = logging.getLogger(__name__)

CLEARABLE_FIELDS = ("description", "due_date", "recurrence_rule")


# ============ HELPERS ============

def commit_or_fail(db: Session, action: str) -> None:
    """Commit the primary write, turning store errors into DependencyFailure."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Store failure while trying to {action}: {e}")
        raise DependencyFailure(f"Could not {action}") from e


def find_task(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFound("Task not found")
    return task


def get_active_assignment(db: Session, task_id: int, identity: str) -> Optional[Assignment]:
    return db.query(Assignment).filter(
        Assignment.task_id == task_id,
        Assignment.assignee == normalize_identity(identity),
        Assignment.status != AssignmentStatus.HIDDEN.value
    ).first()


def visible_tasks_query(db: Session, identity: str) -> Query:
    """Non-hidden tasks the identity created or holds an active assignment on."""
    identity = normalize_identity(identity)
    assigned_ids = select(Assignment.task_id).where(
        Assignment.assignee == identity,
        Assignment.status != AssignmentStatus.HIDDEN.value
    )
    return db.query(Task).filter(
        Task.status != TaskStatus.HIDDEN.value,
        or_(Task.created_by == identity, Task.id.in_(assigned_ids))
    )


def without_recurring_templates(query: Query) -> Query:
    """Drop recurring roots that already spawned an occurrence.

    Once a child exists the root only carries the rule and the next due date,
    the work (and its reminders) lives on the child.
    """
    child = aliased(Task)
    spawned = select(child.parent_task_id).where(child.parent_task_id.isnot(None))
    return query.filter(Task.id.notin_(spawned))


def task_to_response(task: Task, viewer: Optional[str] = None) -> TaskResponse:
    assignees = [a.assignee for a in task.assignments]
    my_status = None
    if viewer:
        viewer = normalize_identity(viewer)
        mine = next((a for a in task.assignments if a.assignee == viewer), None)
        my_status = mine.status if mine else None
    return TaskResponse.model_validate(task).model_copy(
        update={"assigned_to": assignees, "my_status": my_status}
    )


def _check_recurrence(is_recurring: bool, rule: Optional[str], due_date: Optional[datetime]) -> None:
    if not is_recurring:
        return
    if not due_date:
        raise ValidationError("A recurring task needs a due date")
    if not rule or calculate_next_occurrence(rule, due_date) is None:
        raise ValidationError(f"Invalid recurrence rule: {rule!r}")


def _reject_invalid_assignees(targets: List[str], directory: TeamDirectory) -> None:
    invalid = validate_assignees(targets, directory)
    if not invalid:
        return
    if len(invalid) == 1:
        message = f'User does not exist: the email "{invalid[0]}" is not registered'
    else:
        message = f"Users do not exist: {', '.join(invalid)}"
    raise ValidationError(message, invalid=invalid)


def _notify_assigned(notifier: Optional[Notifier], task: Task, identities: List[str], creator: str) -> None:
    for identity in identities:
        if identity == creator:
            continue
        notify_safely(notifier, identity, "task_assigned", {
            "task_id": task.id,
            "title": task.title,
            "message": f"You were assigned to: {task.title}",
        })


# ============ CREATE ============

def create_task(
    db: Session,
    data: TaskCreate,
    creator: str,
    directory: TeamDirectory,
    notifier: Optional[Notifier] = None,
    now: Optional[datetime] = None
) -> Task:
    creator = normalize_identity(creator)
    title = (data.title or "").strip()
    if not title:
        raise ValidationError("Missing required field: title")

    # Seuls les assignés fournis explicitement sont vérifiés
    if data.assignees:
        _reject_invalid_assignees(data.assignees, directory)
        targets = data.assignees
    else:
        targets = [creator]

    _check_recurrence(data.is_recurring, data.recurrence_rule, data.due_date)

    identities = expand_assignees(targets, directory)
    now = now or datetime.utcnow()

    task = Task(
        created_by=creator,
        title=title,
        description=data.description,
        due_date=data.due_date,
        priority=data.priority.value,
        status=TaskStatus.BACKLOG.value,
        position=0,
        last_status_change_at=now,
        channel_id=data.channel_id,
        is_recurring=data.is_recurring,
        recurrence_rule=data.recurrence_rule if data.is_recurring else None,
    )
    task.assignments = [
        Assignment(assignee=identity, status=AssignmentStatus.BACKLOG.value)
        for identity in identities
    ]
    db.add(task)
    commit_or_fail(db, "create task")
    db.refresh(task)

    logger.info(f"Task {task.id} created by {creator} for {len(identities)} assignee(s)")
    _notify_assigned(notifier, task, identities, creator)
    return task


# ============ READ ============

def get_task_for(db: Session, task_id: int, identity: str) -> Task:
    task = visible_tasks_query(db, identity).filter(Task.id == task_id).first()
    if not task:
        raise NotFound("Task not found")
    return task


def list_tasks_for(
    db: Session,
    identity: str,
    status: Optional[str] = None,
    priority: Optional[str] = None
) -> List[Task]:
    query = visible_tasks_query(db, identity)
    if status:
        query = query.filter(Task.status == status)
    if priority:
        query = query.filter(Task.priority == priority)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def list_all_tasks(db: Session, identity: Optional[str] = None) -> List[Task]:
    """Admin overview: every non-hidden task, or the ones visible to `identity`."""
    if identity:
        return list_tasks_for(db, identity)
    return db.query(Task).filter(
        Task.status != TaskStatus.HIDDEN.value
    ).order_by(Task.created_at.desc(), Task.id.desc()).all()


# ============ UPDATE ============

def _sync_assignees(db: Session, task: Task, identities: List[str]) -> List[str]:
    """Three-way diff of the assignment rows. Returns the newly added identities.

    Kept rows are left untouched so their status survives the edit.
    """
    current = {a.assignee: a for a in task.assignments}
    wanted = set(identities)

    for identity, assignment in current.items():
        if identity not in wanted:
            db.delete(assignment)

    added = [identity for identity in identities if identity not in current]
    for identity in added:
        db.add(Assignment(task_id=task.id, assignee=identity, status=AssignmentStatus.BACKLOG.value))
    return added


def update_task(
    db: Session,
    task_id: int,
    data: TaskUpdate,
    caller: str,
    directory: TeamDirectory,
    notifier: Optional[Notifier] = None
) -> Task:
    caller = normalize_identity(caller)
    task = find_task(db, task_id)
    if task.created_by != caller:
        raise Forbidden("Only the creator can edit this task")

    fields = data.model_dump(exclude_unset=True)
    assignees = fields.pop("assignees", None)
    # null explicite: seuls les champs optionnels peuvent être vidés
    fields = {
        field: value for field, value in fields.items()
        if value is not None or field in CLEARABLE_FIELDS
    }

    if "title" in fields:
        fields["title"] = (fields["title"] or "").strip()
        if not fields["title"]:
            raise ValidationError("Title cannot be empty")
    if fields.get("priority") is not None:
        fields["priority"] = fields["priority"].value

    is_recurring = fields.get("is_recurring", task.is_recurring)
    rule = fields.get("recurrence_rule", task.recurrence_rule)
    due_date = fields.get("due_date", task.due_date)
    _check_recurrence(is_recurring, rule, due_date)

    if assignees is not None:
        _reject_invalid_assignees(assignees, directory)

    for field, value in fields.items():
        setattr(task, field, value)

    added = []
    if assignees is not None:
        added = _sync_assignees(db, task, expand_assignees(assignees, directory))

    commit_or_fail(db, "update task")
    db.refresh(task)

    _notify_assigned(notifier, task, added, caller)
    return task


# ============ DELETE ============

def delete_task(db: Session, task_id: int, caller: str) -> None:
    """Soft delete: the task goes to `hidden`, assignment rows stay."""
    task = find_task(db, task_id)
    if task.created_by != normalize_identity(caller):
        raise Forbidden("Only the creator can delete this task")

    task.status = TaskStatus.HIDDEN.value
    commit_or_fail(db, "delete task")
    logger.info(f"Task {task_id} hidden by its creator")
