"""
Status synchronization between a task and its assignments.

- Creator: sets the aggregate status and forces it onto every assignment,
  in one transaction. The creator's decision wins.
- Assignee: sets its own assignment (primary write), then overwrites the
  aggregate status on a best-effort basis. Siblings are never touched.

If the caller is both creator and assignee, the creator path applies.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.core.errors import Forbidden
from taskboard.models.assignment import Assignment, AssignmentStatus
from taskboard.models.task import Task, TaskStatus
from taskboard.services.assignment_service import normalize_identity
from taskboard.services.task_service import commit_or_fail, find_task, get_active_assignment

logger = logging.getLogger(__name__)


def as_assignment_status(status: TaskStatus) -> AssignmentStatus:
    return AssignmentStatus(TaskStatus(status).value)


def fan_out_status(db: Session, task_id: int, status: TaskStatus) -> int:
    """Overwrite every assignment of the task with `status`. Not committed."""
    return db.query(Assignment).filter(
        Assignment.task_id == task_id
    ).update({"status": as_assignment_status(status).value}, synchronize_session=False)


def set_status(
    db: Session,
    task_id: int,
    status: TaskStatus,
    caller: str,
    now: Optional[datetime] = None
) -> Task:
    caller = normalize_identity(caller)
    status = TaskStatus(status)
    now = now or datetime.utcnow()

    task = find_task(db, task_id)
    is_creator = task.created_by == caller
    assignment = None if is_creator else get_active_assignment(db, task_id, caller)

    if not is_creator and assignment is None:
        raise Forbidden("You are not authorized to update this task")

    if is_creator:
        task.status = status.value
        task.last_status_change_at = now
        updated = fan_out_status(db, task_id, status)
        commit_or_fail(db, "update task status")
        logger.info(f"Creator {caller} set task {task_id} to {status.value} ({updated} assignment(s) synced)")
    else:
        assignment.status = as_assignment_status(status).value
        commit_or_fail(db, "update assignment status")
        logger.info(f"Assignee {caller} set own status on task {task_id} to {status.value}")
        _sync_aggregate(db, task, status, now)

    db.refresh(task)
    return task


def _sync_aggregate(db: Session, task: Task, status: TaskStatus, now: datetime) -> None:
    """Best effort: the assignment write already stands if this fails."""
    try:
        task.status = status.value
        task.last_status_change_at = now
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Aggregate status sync failed for task {task.id}: {e}")
