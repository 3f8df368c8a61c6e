"""
Defines all API endpoints for dose logs: marking doses taken and reading
adherence history.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas, database
from ..clock import Clock, get_clock
from ..services import dose_state, queries
from ..utils.dependencies import get_user_id_from_header

router = APIRouter(prefix="/dose-logs", tags=["Dose Logs"])


@router.get("/daily", response_model=List[schemas.DailyLogEntry])
def get_daily_log(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """
    Every dose due on a day (default today) with its taken status.
    """
    return queries.get_daily_log(db, current_user_id, day or clock.today())


@router.get("/monthly", response_model=schemas.MonthlyLogResponse)
def get_monthly_log(
    year: Optional[int] = None,
    month: Optional[int] = None,
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """
    Stored dose logs of a month (default: the current one), grouped by date.
    """
    today = clock.today()
    return queries.get_monthly_log(db, current_user_id, year or today.year, month or today.month)


@router.get("/summary", response_model=schemas.AdherenceSummaryResponse)
def get_adherence_summary(
    days: int = Query(7, ge=1, le=366),
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """Per-regimen adherence over the last `days` days."""
    return queries.get_adherence_summary(db, current_user_id, clock, days)


@router.get("/", response_model=List[schemas.DoseLogWithRegimen])
def get_logs_by_date(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """Stored dose logs of a single day (default today)."""
    return queries.get_logs_by_date(db, current_user_id, day or clock.today())


@router.post("/mark-bulk", response_model=List[schemas.BulkMarkResult])
def mark_many_taken(
    entries: List[schemas.BulkMarkEntry],
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """
    Marks several doses taken. Each entry succeeds or fails on its own.
    """
    return dose_state.mark_many_taken(db, current_user_id, entries, clock)


@router.post("/{regimen_id}/mark-taken", response_model=schemas.DoseLogResponse)
def mark_taken(
    regimen_id: int,
    request: schemas.MarkTakenRequest,
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """
    Marks one dose of a regimen as taken. Repeating the call is harmless.
    """
    return dose_state.mark_taken(
        db, current_user_id, regimen_id, request.time, clock, request_date=request.date
    )
