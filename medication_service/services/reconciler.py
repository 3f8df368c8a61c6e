"""
Keeps the dose_logs table in step with each regimen's definition.

`materialize` runs once when a regimen is created; `reconcile` runs after
every committed edit. Past logs and taken logs are history: neither entry
point ever deletes or rewrites them.
"""

import logging
import threading
from typing import Dict, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..clock import Clock
from ..errors import StorageError
from .log_store import insert_if_absent
from .schedule import expand

logger = logging.getLogger(__name__)

# Reconciliation is serialized per regimen id within this process
_regimen_locks: Dict[int, threading.Lock] = {}
_registry_lock = threading.Lock()


def _lock_for(regimen_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _regimen_locks.get(regimen_id)
        if lock is None:
            lock = _regimen_locks[regimen_id] = threading.Lock()
        return lock


def forget_regimen(regimen_id: int) -> None:
    """Drops the reconciliation lock of a deleted regimen."""
    with _registry_lock:
        _regimen_locks.pop(regimen_id, None)


def materialize(db: Session, regimen: models.Regimen) -> int:
    """
    Creates an untaken log for every obligation in the regimen's full window.

    Returns the number of logs created.
    """
    obligations = expand(regimen, regimen.start_date, regimen.end_date)
    try:
        created = insert_if_absent(db, regimen.user_id, obligations)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to materialize logs for regimen {regimen.id}: {e}")
        raise StorageError("Could not create dose logs for the regimen.") from e

    logger.info(f"Materialized {created} dose logs for regimen {regimen.id}.")
    return created


def reconcile(db: Session, regimen: models.Regimen, clock: Clock) -> Tuple[int, int]:
    """
    Resynchronizes a regimen's future logs with its current definition.

    Phase one deletes every untaken log dated today or later. Phase two
    re-expands the schedule over [max(start, today), end] and inserts the
    missing logs; surviving taken logs at the same key are left untouched.
    Both phases commit together.

    Must be called after the regimen edit itself has been committed.

    Returns:
        tuple: (logs deleted, logs created)
    """
    today = clock.today()
    with _lock_for(regimen.id):
        try:
            deleted = (
                db.query(models.DoseLog)
                .filter(
                    models.DoseLog.user_id == regimen.user_id,
                    models.DoseLog.regimen_id == regimen.id,
                    models.DoseLog.date >= today,
                    models.DoseLog.taken.is_(False),
                )
                .delete(synchronize_session=False)
            )
            obligations = expand(regimen, today, regimen.end_date)
            created = insert_if_absent(db, regimen.user_id, obligations)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to reconcile logs for regimen {regimen.id}: {e}")
            raise StorageError("Could not reconcile dose logs for the regimen; retry the update.") from e

    logger.info(f"Reconciled regimen {regimen.id}: deleted {deleted}, created {created} dose logs.")
    return deleted, created
