"""Named leases so that overlapping sweep triggers don't run the same sweep twice."""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskboard.core.config import settings
from taskboard.core.errors import SweepInProgress
from taskboard.models.sweep_lease import SweepLease

logger = logging.getLogger(__name__)


def acquire_lease(db: Session, name: str, holder: str, ttl_seconds: int, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    expires_at = now + timedelta(seconds=ttl_seconds)

    # Reprise d'un bail expiré: update conditionnel, atomique côté base
    taken = db.query(SweepLease).filter(
        SweepLease.name == name,
        SweepLease.expires_at <= now
    ).update({"holder": holder, "expires_at": expires_at}, synchronize_session=False)
    if taken:
        db.commit()
        return True

    if db.query(SweepLease.name).filter(SweepLease.name == name).first() is not None:
        db.rollback()
        return False

    db.add(SweepLease(name=name, holder=holder, expires_at=expires_at))
    try:
        db.commit()
    except IntegrityError:
        # Un autre déclencheur a inséré la ligne entre-temps
        db.rollback()
        return False
    return True


def release_lease(db: Session, name: str, holder: str) -> None:
    db.query(SweepLease).filter(
        SweepLease.name == name,
        SweepLease.holder == holder
    ).update({"expires_at": datetime.utcnow()}, synchronize_session=False)
    db.commit()


@contextmanager
def sweep_lease(db: Session, name: str, ttl_seconds: Optional[int] = None):
    holder = uuid.uuid4().hex
    ttl = settings.SWEEP_LEASE_SECONDS if ttl_seconds is None else ttl_seconds
    if not acquire_lease(db, name, holder, ttl):
        logger.warning(f"Sweep {name} already running, skipping")
        raise SweepInProgress(f"Sweep '{name}' is already running")
    try:
        yield holder
    finally:
        try:
            release_lease(db, name, holder)
        except Exception as e:
            db.rollback()
            logger.error(f"Could not release lease {name}: {e}")
