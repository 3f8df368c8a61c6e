# medication_service/scheduler.py

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .database import SessionLocal
from . import models

logger = logging.getLogger(__name__)


def delete_orphaned_dose_logs(session_factory=SessionLocal) -> int:
    """
    Deletes dose logs whose regimen no longer exists.

    Returns the number of deleted logs, or 0 when the cleanup failed.
    """
    db = session_factory()
    try:
        logger.info("Starting cleanup of orphaned dose logs.")

        deleted_count = (
            db.query(models.DoseLog)
            .filter(~models.DoseLog.regimen_id.in_(select(models.Regimen.id)))
            .delete(synchronize_session=False)
        )

        db.commit()
        logger.info(f"Cleanup complete. Deleted {deleted_count} orphaned dose logs.")
        return deleted_count

    except SQLAlchemyError as e:
        logger.error(f"Error during scheduled cleanup: {e}")
        db.rollback()
        return 0
    finally:
        db.close()
