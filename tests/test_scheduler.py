"""
Tests for the scheduled orphan cleanup job.
"""

from medication_service.scheduler import delete_orphaned_dose_logs
from medication_service.services import regimens

USER_ID = 1


def test_deletes_only_orphaned_logs(db, make_regimen, session_factory, count_logs):
    kept = make_regimen()
    gone = make_regimen(name="Gone")
    regimens.delete_regimen(db, USER_ID, gone.id)

    deleted = delete_orphaned_dose_logs(session_factory)

    assert deleted == 10
    assert count_logs(gone.id) == 0
    assert count_logs(kept.id) == 10


def test_nothing_to_delete(session_factory):
    assert delete_orphaned_dose_logs(session_factory) == 0
