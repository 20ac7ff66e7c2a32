"""Stale task detection, snoozing and the stale notification sweep"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from taskboard.core.config import settings
from taskboard.core.errors import Forbidden
from taskboard.core.ports import Notifier
from taskboard.models.assignment import Assignment, AssignmentStatus
from taskboard.models.task import Task, TaskStatus
from taskboard.services.assignment_service import normalize_identity
from taskboard.services.directory_service import UserDirectory
from taskboard.services.notification_service import notify_safely
from taskboard.services.task_service import (
    commit_or_fail,
    find_task,
    get_active_assignment,
    without_recurring_templates,
)

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (TaskStatus.DONE.value, TaskStatus.HIDDEN.value)


def is_stale_task(task: Task, now: Optional[datetime] = None) -> bool:
    """A task is stale when it is open, not snoozed, and its status has not
    changed for STALE_AFTER_DAYS days."""
    if task.status in CLOSED_STATUSES:
        return False

    now = now or datetime.utcnow()
    if task.snoozed_until and task.snoozed_until > now:
        return False

    # Pas d'horodatage -> on ne peut rien conclure
    if not task.last_status_change_at:
        return False

    return task.last_status_change_at < now - timedelta(days=settings.STALE_AFTER_DAYS)


def snooze_task(db: Session, task_id: int, caller: str, now: Optional[datetime] = None) -> Task:
    if get_active_assignment(db, task_id, caller) is None:
        raise Forbidden("You are not assigned to this task")
    task = find_task(db, task_id)

    now = now or datetime.utcnow()
    task.snoozed_until = now + timedelta(days=settings.SNOOZE_DAYS)
    commit_or_fail(db, "snooze task")
    db.refresh(task)
    return task


def list_stale_tasks_for(db: Session, identity: str, now: Optional[datetime] = None) -> List[Task]:
    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=settings.STALE_AFTER_DAYS)

    candidates = without_recurring_templates(db.query(Task)).join(
        Assignment, Assignment.task_id == Task.id
    ).filter(
        Assignment.assignee == normalize_identity(identity),
        Assignment.status.notin_(CLOSED_STATUSES),
        Task.status.notin_(CLOSED_STATUSES),
        Task.last_status_change_at < cutoff
    ).order_by(Task.last_status_change_at).all()

    return [task for task in candidates if is_stale_task(task, now)]


def notify_stale_tasks(db: Session, notifier: Notifier, now: Optional[datetime] = None) -> Dict[str, int]:
    """For every approved user, one `task_stale` notification per stale task.

    Duplicate suppression is left to the notifier.
    """
    now = now or datetime.utcnow()
    users = UserDirectory(db).list_approved_identities()
    notified = 0
    errors = 0

    for email in users:
        try:
            stale_tasks = list_stale_tasks_for(db, email, now)
        except Exception as e:
            errors += 1
            logger.error(f"Stale check failed for {email}: {e}")
            db.rollback()
            continue

        for task in stale_tasks:
            sent = notify_safely(notifier, email, "task_stale", {
                "task_id": task.id,
                "title": task.title,
                "message": f"This task hasn't moved in {settings.STALE_AFTER_DAYS} days. Still relevant? \"{task.title}\"",
            })
            if sent:
                notified += 1

    logger.info(f"Stale sweep: {len(users)} user(s), {notified} notification(s), {errors} error(s)")
    return {"users": len(users), "notified": notified, "errors": errors}
