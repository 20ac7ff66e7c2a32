"""
Recurring tasks.

Strategy: spawn a new instance per occurrence. The root task (no parent) keeps
the rule and always points at the next due date; each occurrence is a child
row with its own progress, so history is preserved.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from dateutil.relativedelta import relativedelta
from dateutil.rrule import rrulestr
from sqlalchemy.orm import Session

from taskboard.core.config import settings
from taskboard.models.assignment import Assignment, AssignmentStatus
from taskboard.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)

# Ordre important: premier motif trouvé dans la règle
FALLBACK_INTERVALS = (
    ("DAILY", relativedelta(days=1)),
    ("WEEKLY", relativedelta(days=7)),
    ("MONTHLY", relativedelta(months=1)),
    ("YEARLY", relativedelta(years=1)),
)


def _next_from_rule(rule: str, current_due: datetime, lookahead_days: int) -> Optional[datetime]:
    try:
        parsed = rrulestr(rule, dtstart=current_due)
        window_end = current_due + timedelta(days=lookahead_days)
        occurrences = parsed.between(current_due, window_end, inc=False)
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(f"Could not parse recurrence rule {rule!r}: {e}")
        return None
    return occurrences[0] if occurrences else None


def _next_from_fallback(rule: str, current_due: datetime) -> Optional[datetime]:
    text = rule.upper()
    for marker, step in FALLBACK_INTERVALS:
        if marker in text:
            return current_due + step
    return None


def calculate_next_occurrence(
    rule: Optional[str],
    current_due: datetime,
    lookahead_days: Optional[int] = None
) -> Optional[datetime]:
    """First occurrence strictly after `current_due`, or None.

    The structured rule is tried first, then the DAILY/WEEKLY/MONTHLY/YEARLY
    markers of the rule text.
    """
    if not rule or current_due is None:
        return None
    if lookahead_days is None:
        lookahead_days = settings.RECURRENCE_LOOKAHEAD_DAYS

    next_due = _next_from_rule(rule, current_due, lookahead_days)
    if next_due is None:
        next_due = _next_from_fallback(rule, current_due)

    if next_due is None or next_due <= current_due:
        return None
    return next_due


def regenerate_task(db: Session, parent: Task, next_due: datetime, now: Optional[datetime] = None) -> Task:
    """Spawn the next occurrence of `parent` and move the parent's due date.

    Assignments are copied as backlog: progress does not carry over.
    """
    now = now or datetime.utcnow()
    child = Task(
        created_by=parent.created_by,
        parent_task_id=parent.id,
        channel_id=parent.channel_id,
        title=parent.title,
        description=parent.description,
        priority=parent.priority,
        status=TaskStatus.BACKLOG.value,
        position=0,
        due_date=next_due,
        last_status_change_at=now,
        is_recurring=False,
        recurrence_rule=parent.recurrence_rule,
    )
    child.assignments = [
        Assignment(assignee=a.assignee, status=AssignmentStatus.BACKLOG.value)
        for a in parent.assignments
    ]
    db.add(child)
    parent.due_date = next_due
    db.commit()
    db.refresh(child)
    return child


def run_recurrence_sweep(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    now = now or datetime.utcnow()

    due_tasks = db.query(Task).filter(
        Task.is_recurring == True,
        Task.parent_task_id.is_(None),
        Task.status != TaskStatus.HIDDEN.value,
        Task.due_date.isnot(None),
        Task.due_date < now
    ).order_by(Task.due_date).all()
    due_ids = [task.id for task in due_tasks]

    logger.info(f"[RECURRING] Found {len(due_ids)} due recurring task(s)")

    processed = 0
    errors = 0
    skipped = 0

    for task_id in due_ids:
        try:
            task = db.query(Task).filter(Task.id == task_id).first()
            next_due = calculate_next_occurrence(task.recurrence_rule, task.due_date)
            if next_due is None:
                skipped += 1
                logger.warning(f"[RECURRING] No next occurrence for task {task_id} (rule {task.recurrence_rule!r}), skipped")
                continue

            child = regenerate_task(db, task, next_due, now)
            processed += 1
            logger.info(f"[RECURRING] Task {task_id} -> new instance {child.id} due {next_due.isoformat()}")
        except Exception as e:
            db.rollback()
            errors += 1
            logger.error(f"[RECURRING] Error processing task {task_id}: {e}")

    logger.info(f"[RECURRING] Processing complete: {processed} processed, {errors} errors, {skipped} skipped")
    return {"processed": processed, "errors": errors, "skipped": skipped, "total": len(due_ids)}
