"""Kanban board: drag & drop moves and per-column ordering"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from taskboard.core.errors import Forbidden, ValidationError
from taskboard.models.task import KANBAN_COLUMNS, Task, TaskStatus
from taskboard.services.assignment_service import normalize_identity
from taskboard.services.status_service import fan_out_status
from taskboard.services.task_service import (
    commit_or_fail,
    find_task,
    get_active_assignment,
    visible_tasks_query,
    without_recurring_templates,
)

logger = logging.getLogger(__name__)


def _column_order(task: Task):
    return (task.position or 0, task.created_at or datetime.min, task.id)


def move_kanban(
    db: Session,
    task_id: int,
    status: TaskStatus,
    position: int,
    caller: str,
    now: Optional[datetime] = None
) -> Task:
    """Move a task to `status` at rank `position`.

    Only assignees may move a task, the creator alone may not. The new status
    is fanned out to every assignment and the caller's column is renumbered
    0..n-1 with the task at `position`, all in one transaction.
    """
    caller = normalize_identity(caller)
    status = TaskStatus(status)
    if status not in KANBAN_COLUMNS:
        raise ValidationError(f"'{status.value}' is not a Kanban column")
    if position < 0:
        raise ValidationError("Position must be zero or positive")

    # Vérif d'abord l'assignation: une tâche inconnue donne aussi Forbidden
    if get_active_assignment(db, task_id, caller) is None:
        raise Forbidden("You are not authorized to move this task")
    task = find_task(db, task_id)

    siblings = without_recurring_templates(visible_tasks_query(db, caller)).filter(
        Task.status == status.value,
        Task.id != task_id
    ).all()
    siblings.sort(key=_column_order)
    siblings.insert(min(position, len(siblings)), task)
    for rank, item in enumerate(siblings):
        item.position = rank

    task.status = status.value
    task.last_status_change_at = now or datetime.utcnow()
    fan_out_status(db, task_id, status)
    commit_or_fail(db, "move task")

    logger.info(f"{caller} moved task {task_id} to {status.value}#{task.position}")
    db.refresh(task)
    return task


def get_board(db: Session, identity: str) -> Dict[str, List[Task]]:
    columns = {column.value: [] for column in KANBAN_COLUMNS}
    for task in without_recurring_templates(visible_tasks_query(db, identity)).all():
        if task.status in columns:
            columns[task.status].append(task)
    for tasks in columns.values():
        tasks.sort(key=_column_order)
    return columns
