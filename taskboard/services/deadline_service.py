"""Due-date views and the deadline monitor sweep"""

import logging
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from taskboard.core.config import settings
from taskboard.core.ports import Notifier
from taskboard.models.assignment import Assignment, AssignmentStatus
from taskboard.models.task import Task, TaskStatus
from taskboard.services.notification_service import notify_safely
from taskboard.services.task_service import visible_tasks_query, without_recurring_templates

logger = logging.getLogger(__name__)


def get_today_tasks(db: Session, identity: str, now: Optional[datetime] = None) -> List[Task]:
    today = (now or datetime.utcnow()).date()
    day_start = datetime.combine(today, datetime.min.time())
    day_end = datetime.combine(today + timedelta(days=1), datetime.min.time())

    return without_recurring_templates(visible_tasks_query(db, identity)).filter(
        Task.due_date >= day_start,
        Task.due_date < day_end
    ).order_by(Task.due_date).all()


def get_overdue_tasks(db: Session, identity: str, now: Optional[datetime] = None) -> List[Task]:
    today = (now or datetime.utcnow()).date()
    today_start = datetime.combine(today, datetime.min.time())

    return without_recurring_templates(visible_tasks_query(db, identity)).filter(
        Task.due_date < today_start,
        Task.status != TaskStatus.DONE.value
    ).order_by(Task.due_date).all()


def get_this_week_tasks(db: Session, identity: str, now: Optional[datetime] = None) -> List[Task]:
    today = (now or datetime.utcnow()).date()
    days_until_end = (6 - today.weekday()) % 7
    if days_until_end == 0:
        days_until_end = 7

    week_end = today + timedelta(days=days_until_end)
    day_start = datetime.combine(today, datetime.min.time())
    end_time = datetime.combine(week_end, datetime.max.time())

    return without_recurring_templates(visible_tasks_query(db, identity)).filter(
        Task.due_date >= day_start,
        Task.due_date <= end_time
    ).order_by(Task.due_date).all()


def _open_tasks(db: Session):
    return without_recurring_templates(db.query(Task)).filter(
        Task.status.notin_((TaskStatus.DONE.value, TaskStatus.HIDDEN.value)),
        Task.due_date.isnot(None)
    )


def notify_deadlines(db: Session, notifier: Notifier, now: Optional[datetime] = None) -> Dict[str, int]:
    """Notify open assignees of tasks due soon or already overdue."""
    now = now or datetime.utcnow()
    horizon = now + timedelta(hours=settings.DEADLINE_WINDOW_HOURS)

    approaching = _open_tasks(db).filter(Task.due_date >= now, Task.due_date <= horizon).all()
    overdue = _open_tasks(db).filter(Task.due_date < now).all()

    sent = 0
    for urgency, tasks in (("approaching", approaching), ("overdue", overdue)):
        kind = f"deadline_{urgency}"
        for task in tasks:
            assignees = [
                a.assignee for a in task.assignments
                if a.status not in (AssignmentStatus.DONE.value, AssignmentStatus.HIDDEN.value)
            ]
            if not assignees:
                logger.debug(f"Task {task.id} has no open assignee, no deadline notification")
                continue

            hours_remaining = 0
            if urgency == "approaching":
                hours_remaining = max(0, int((task.due_date - now).total_seconds() // 3600))
            message = f'"{task.title}" is {"overdue" if urgency == "overdue" else "due soon"}'

            for email in assignees:
                if notify_safely(notifier, email, kind, {
                    "task_id": task.id,
                    "title": task.title,
                    "message": message,
                    "priority": task.priority,
                    "due_date": task.due_date.isoformat(),
                    "urgency": urgency,
                    "hours_remaining": hours_remaining,
                }):
                    sent += 1

    logger.info(f"Deadline sweep: {len(approaching)} approaching, {len(overdue)} overdue, {sent} notification(s)")
    return {"approaching": len(approaching), "overdue": len(overdue), "notifications_sent": sent}
