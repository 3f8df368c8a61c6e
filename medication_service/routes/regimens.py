"""
Defines all API endpoints related to medication regimens.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import schemas, database
from ..clock import Clock, get_clock
from ..services import queries, regimens
from ..utils.dependencies import get_user_id_from_header

router = APIRouter(prefix="/regimens", tags=["Regimens"])


@router.post("/", response_model=schemas.RegimenResponse, status_code=status.HTTP_201_CREATED)
def create_regimen(
    regimen: schemas.RegimenCreate,
    db: Session = Depends(database.get_db),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """
    Creates a regimen for the authenticated user and materializes its dose logs.
    """
    return regimens.create_regimen(db, current_user_id, regimen)


@router.get("/", response_model=List[schemas.RegimenResponse])
def list_regimens(
    db: Session = Depends(database.get_db),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """Retrieves all regimens of the authenticated user."""
    return regimens.list_regimens(db, current_user_id)


@router.get("/today", response_model=List[schemas.RegimenResponse])
def get_regimens_due_today(
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """Retrieves regimens with at least one dose due today."""
    return queries.get_due_today(db, current_user_id, clock)


@router.get("/month", response_model=List[schemas.RegimenResponse])
def get_regimens_for_month(
    year: Optional[int] = None,
    month: Optional[int] = None,
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """
    Retrieves regimens whose window overlaps a month (default: the current one).
    """
    today = clock.today()
    return queries.get_regimens_for_month(db, current_user_id, year or today.year, month or today.month)


@router.get("/refill-warning", response_model=List[schemas.RefillWarning])
def get_refill_warnings(
    db: Session = Depends(database.get_db),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """Estimates remaining days of stock and flags regimens that need a refill."""
    return queries.get_refill_warnings(db, current_user_id)


@router.get("/upcoming", response_model=List[schemas.UpcomingDose])
def get_upcoming_doses(
    hours: Optional[int] = Query(None, ge=0, le=24),
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """Lists today's doses due within the next few hours."""
    return queries.get_upcoming(db, current_user_id, clock, hours)


@router.get("/progress/summary", response_model=schemas.ProgressResponse)
def get_progress(
    db: Session = Depends(database.get_db),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """Percentage of logged doses that were taken."""
    return queries.get_progress(db, current_user_id)


@router.get("/{regimen_id}", response_model=schemas.RegimenResponse)
def get_regimen(
    regimen_id: int,
    db: Session = Depends(database.get_db),
    current_user_id: int = Depends(get_user_id_from_header)
):
    return regimens.get_regimen(db, current_user_id, regimen_id)


@router.put("/{regimen_id}", response_model=schemas.RegimenResponse)
def update_regimen(
    regimen_id: int,
    changes: schemas.RegimenUpdate,
    db: Session = Depends(database.get_db),
    clock: Clock = Depends(get_clock),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """
    Edits a regimen and resynchronizes its future dose logs.
    """
    return regimens.update_regimen(db, current_user_id, regimen_id, changes, clock)


@router.delete("/{regimen_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_regimen(
    regimen_id: int,
    db: Session = Depends(database.get_db),
    current_user_id: int = Depends(get_user_id_from_header)
):
    """
    Deletes a specific regimen for the authenticated user.
    """
    regimens.delete_regimen(db, current_user_id, regimen_id)
    # For a 204 response, you shouldn't return a body
    return
