import pytest
from datetime import datetime, timedelta

from taskboard.core.errors import SweepInProgress
from taskboard.models.sweep_lease import SweepLease
from taskboard.services.lease_service import acquire_lease, release_lease, sweep_lease

NOW = datetime(2026, 3, 10, 12, 0, 0)


def test_second_holder_is_rejected(db):
    assert acquire_lease(db, "recurrence", "first", 300, NOW)
    assert not acquire_lease(db, "recurrence", "second", 300, NOW + timedelta(seconds=10))


def test_expired_lease_can_be_taken_over(db):
    assert acquire_lease(db, "recurrence", "first", 300, NOW)
    assert acquire_lease(db, "recurrence", "second", 300, NOW + timedelta(seconds=301))

    lease = db.query(SweepLease).filter(SweepLease.name == "recurrence").one()
    assert lease.holder == "second"


def test_leases_are_independent_per_name(db):
    assert acquire_lease(db, "recurrence", "a", 300, NOW)
    assert acquire_lease(db, "stale", "b", 300, NOW)


def test_released_lease_is_free(db):
    assert acquire_lease(db, "stale", "first", 300)
    release_lease(db, "stale", "first")
    assert acquire_lease(db, "stale", "second", 300)


def test_sweep_lease_context_manager(db):
    with sweep_lease(db, "deadlines"):
        with pytest.raises(SweepInProgress):
            with sweep_lease(db, "deadlines"):
                pass

    # Libéré à la sortie
    with sweep_lease(db, "deadlines") as holder:
        assert holder
