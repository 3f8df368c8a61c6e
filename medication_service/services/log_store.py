"""
Low-level access to the dose_logs table.

The unique (user_id, regimen_id, date, time) key plus an atomic
INSERT .. ON CONFLICT DO NOTHING is the only concurrency guard for logs:
two writers racing on the same key both succeed, and exactly one row exists
afterwards.
"""

from datetime import date
from typing import Iterable, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from .. import models
from .schedule import DoseObligation

# Keeps a multi-row INSERT under SQLite's bound-parameter limit
INSERT_BATCH_SIZE = 100

_CONFLICT_KEY = ["user_id", "regimen_id", "date", "time"]


def _insert_statement(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(models.DoseLog)
    if dialect == "sqlite":
        return sqlite.insert(models.DoseLog)
    raise NotImplementedError(f"No insert-if-absent support for the '{dialect}' dialect")


def insert_if_absent(db: Session, user_id: int, obligations: Iterable[DoseObligation]) -> int:
    """
    Creates an untaken log for each obligation that has none yet.

    Existing rows are left exactly as they are, taken or not. The caller
    owns the transaction. Returns the number of rows inserted.
    """
    rows = [
        {
            "user_id": user_id,
            "regimen_id": o.regimen_id,
            "date": o.date,
            "time": o.time,
            "taken": False,
        }
        for o in obligations
    ]

    inserted = 0
    for i in range(0, len(rows), INSERT_BATCH_SIZE):
        stmt = (
            _insert_statement(db)
            .values(rows[i:i + INSERT_BATCH_SIZE])
            .on_conflict_do_nothing(index_elements=_CONFLICT_KEY)
        )
        result = db.execute(stmt)
        inserted += max(result.rowcount or 0, 0)
    return inserted


def key_filter(query, user_id: int, regimen_id: int, day: date, time: str):
    return query.filter(
        models.DoseLog.user_id == user_id,
        models.DoseLog.regimen_id == regimen_id,
        models.DoseLog.date == day,
        models.DoseLog.time == time,
    )


def find_log(db: Session, user_id: int, regimen_id: int, day: date, time: str) -> Optional[models.DoseLog]:
    return key_filter(db.query(models.DoseLog), user_id, regimen_id, day, time).first()
