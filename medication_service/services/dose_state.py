"""
The pending -> taken transition of a single dose.

A dose with no log row yet is implicitly pending; the first attempt to mark
it creates the row. The transition itself is a conditional UPDATE on
`taken = false`, and the stock decrement only follows when that UPDATE
changed a row, so a dose decrements stock at most once no matter how many
requests race for it.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..clock import Clock
from ..config import settings
from ..errors import InvalidState, ServiceError, StorageError, ValidationError
from .log_store import find_log, insert_if_absent, key_filter
from .regimens import get_regimen
from .schedule import DoseObligation

logger = logging.getLogger(__name__)


def mark_taken(
    db: Session,
    user_id: int,
    regimen_id: int,
    time: str,
    clock: Clock,
    request_date: Optional[date] = None,
    grace_days: Optional[int] = None,
) -> models.DoseLog:
    """
    Marks the dose at `time` on `request_date` (default today) as taken.

    Marking an already-taken dose returns the existing log unchanged.

    Raises:
        NotFound: the regimen does not exist for this user.
        ValidationError: `time` is not a HH:MM label.
        InvalidState: the date is outside the regimen window plus the grace
            margin, the time is not one of the regimen's daily times, or the
            dose belongs to a past day and is still pending.
        StorageError: the database failed.
    """
    today = clock.today()
    day = request_date or today
    margin = timedelta(days=settings.GRACE_MARGIN_DAYS if grace_days is None else grace_days)

    regimen = get_regimen(db, user_id, regimen_id)

    if not schemas.is_valid_time_label(time):
        raise ValidationError(f"Invalid time '{time}'. Expected zero-padded HH:MM (24h).")

    if day < regimen.start_date - margin or day > regimen.end_date + margin:
        raise InvalidState(
            f"{day.isoformat()} is outside the schedule window "
            f"{regimen.start_date.isoformat()} to {regimen.end_date.isoformat()}"
        )
    if time not in (regimen.daily_times or []):
        raise InvalidState(f"{time} is not a scheduled time for this regimen")

    try:
        log = find_log(db, user_id, regimen_id, day, time)
        if log is not None and log.taken:
            return log

        if day < today:
            logger.warning(
                f"Rejected retroactive mark for regimen {regimen_id} at {day.isoformat()} {time}."
            )
            raise InvalidState("Cannot retroactively mark a past dose as taken")

        insert_if_absent(db, user_id, [DoseObligation(date=day, time=time, regimen_id=regimen_id)])

        transitioned = (
            key_filter(db.query(models.DoseLog), user_id, regimen_id, day, time)
            .filter(models.DoseLog.taken.is_(False))
            .update(
                {models.DoseLog.taken: True, models.DoseLog.taken_at: clock.now()},
                synchronize_session=False,
            )
        )
        if transitioned:
            db.query(models.Regimen).filter(
                models.Regimen.id == regimen_id,
                models.Regimen.tablets_remaining > 0
            ).update(
                {models.Regimen.tablets_remaining: models.Regimen.tablets_remaining - 1},
                synchronize_session=False,
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to mark regimen {regimen_id} dose {day.isoformat()} {time}: {e}")
        raise StorageError("Could not record the dose.") from e

    if transitioned:
        logger.info(f"Regimen {regimen_id}: dose {day.isoformat()} {time} marked taken.")

    db.expire_all()
    return find_log(db, user_id, regimen_id, day, time)


def mark_many_taken(
    db: Session,
    user_id: int,
    entries: List[schemas.BulkMarkEntry],
    clock: Clock,
) -> List[schemas.BulkMarkResult]:
    """
    Marks several doses, each on its own. One entry failing never rolls
    back another; every entry reports its own outcome.
    """
    results = []
    for entry in entries:
        try:
            log = mark_taken(db, user_id, entry.regimen_id, entry.time, clock, request_date=entry.date)
        except ServiceError as e:
            results.append(schemas.BulkMarkResult(
                regimen_id=entry.regimen_id,
                time=entry.time,
                ok=False,
                error=schemas.ErrorDetail(**e.to_dict()),
            ))
            continue
        results.append(schemas.BulkMarkResult(
            regimen_id=entry.regimen_id,
            time=entry.time,
            ok=True,
            log=schemas.DoseLogResponse.model_validate(log),
        ))
    return results
