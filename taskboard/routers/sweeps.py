"""
Router des balayages périodiques, appelés par un cron externe
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.core.database import get_db
from taskboard.core.deps import get_notifier, require_cron_secret
from taskboard.schemas.task import DeadlineSweepResult, RecurrenceSweepResult, StaleSweepResult
from taskboard.services.deadline_service import notify_deadlines
from taskboard.services.lease_service import sweep_lease
from taskboard.services.notification_service import DatabaseNotifier
from taskboard.services.recurrence_service import run_recurrence_sweep
from taskboard.services.staleness_service import notify_stale_tasks

router = APIRouter(prefix="/sweeps", tags=["sweeps"], dependencies=[Depends(require_cron_secret)])


@router.post("/recurrence", response_model=RecurrenceSweepResult)
def recurrence(db: Session = Depends(get_db)):
    with sweep_lease(db, "recurrence"):
        return run_recurrence_sweep(db)


@router.post("/stale", response_model=StaleSweepResult)
def stale(db: Session = Depends(get_db), notifier: DatabaseNotifier = Depends(get_notifier)):
    with sweep_lease(db, "stale"):
        return notify_stale_tasks(db, notifier)


@router.post("/deadlines", response_model=DeadlineSweepResult)
def deadlines(db: Session = Depends(get_db), notifier: DatabaseNotifier = Depends(get_notifier)):
    with sweep_lease(db, "deadlines"):
        return notify_deadlines(db, notifier)
