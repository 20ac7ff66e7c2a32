"""
Notification emitters.

Every call site goes through notify_safely(): a notification failure is logged
and never fails the task mutation that triggered it.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from taskboard.core import database
from taskboard.core.config import settings
from taskboard.core.ports import Notifier
from taskboard.models.notification import Notification

logger = logging.getLogger(__name__)

TITLES = {
    "task_assigned": "New Reminder Assigned",
    "task_stale": "Task needs attention",
    "deadline_approaching": "Deadline Approaching",
    "deadline_overdue": "Task Overdue!",
}


class DatabaseNotifier:
    """Stores notifications in the `notifications` table, in its own session.

    A notification for the same (user, task, kind) stored less than
    `dedup_hours` ago is dropped.
    """

    def __init__(self, dedup_hours: Optional[int] = None):
        self.dedup_hours = settings.NOTIFICATION_DEDUP_HOURS if dedup_hours is None else dedup_hours

    def notify(self, identity: str, kind: str, payload: Dict[str, Any]) -> None:
        task_id = payload.get("task_id")
        db = database.SessionLocal()
        try:
            if self._recently_sent(db, identity, kind, task_id):
                logger.debug(f"Skipping duplicate {kind} for {identity} on task {task_id}")
                return
            db.add(Notification(
                user_email=identity,
                task_id=task_id,
                kind=kind,
                title=TITLES.get(kind, kind),
                message=payload.get("message"),
                payload=payload,
            ))
            db.commit()
        finally:
            db.close()

    def _recently_sent(self, db, identity: str, kind: str, task_id) -> bool:
        if not self.dedup_hours or task_id is None:
            return False
        since = datetime.utcnow() - timedelta(hours=self.dedup_hours)
        return db.query(Notification.id).filter(
            Notification.user_email == identity,
            Notification.task_id == task_id,
            Notification.kind == kind,
            Notification.created_at >= since
        ).first() is not None


class LoggingNotifier:
    def notify(self, identity: str, kind: str, payload: Dict[str, Any]) -> None:
        logger.info(f"[{kind}] -> {identity}: {payload.get('message')}")


def notify_safely(notifier: Optional[Notifier], identity: str, kind: str, payload: Dict[str, Any]) -> bool:
    """Send one notification, swallowing (and logging) any failure."""
    if notifier is None:
        return False
    try:
        notifier.notify(identity, kind, payload)
        return True
    except Exception as e:
        logger.error(f"Notification {kind} for {identity} failed: {e}")
        return False
