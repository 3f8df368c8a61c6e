"""
Regimen CRUD. Every lookup is scoped to the owning user, so a regimen that
belongs to someone else is indistinguishable from one that does not exist.
"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..clock import Clock
from ..errors import NotFound, StorageError, ValidationError
from .reconciler import forget_regimen, materialize, reconcile

logger = logging.getLogger(__name__)

# Fields a partial edit may not clear
_REQUIRED_FIELDS = ("name", "start_date", "end_date", "daily_times", "tablets_remaining")


def get_regimen(db: Session, user_id: int, regimen_id: int) -> models.Regimen:
    regimen = db.query(models.Regimen).filter(
        models.Regimen.id == regimen_id,
        models.Regimen.user_id == user_id
    ).first()
    if regimen is None:
        raise NotFound("Regimen not found")
    return regimen


def list_regimens(db: Session, user_id: int) -> List[models.Regimen]:
    return (
        db.query(models.Regimen)
        .filter(models.Regimen.user_id == user_id)
        .order_by(models.Regimen.id)
        .all()
    )


def create_regimen(db: Session, user_id: int, payload: schemas.RegimenCreate) -> models.Regimen:
    """
    Stores a new regimen and materializes its dose logs.

    A storage failure while materializing is logged but does not fail the
    creation: missing logs are created lazily when a dose is marked taken.
    """
    regimen = models.Regimen(**payload.model_dump(), user_id=user_id)
    try:
        db.add(regimen)
        db.commit()
        db.refresh(regimen)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create regimen for user {user_id}: {e}")
        raise StorageError("Could not save the regimen.") from e

    logger.info(f"Created regimen {regimen.id} ('{regimen.name}') for user {user_id}.")

    try:
        materialize(db, regimen)
    except StorageError:
        logger.warning(f"Regimen {regimen.id} saved without materialized logs.")

    db.refresh(regimen)
    return regimen


def update_regimen(
    db: Session,
    user_id: int,
    regimen_id: int,
    payload: schemas.RegimenUpdate,
    clock: Clock,
) -> models.Regimen:
    """
    Applies a partial edit, commits it, then reconciles the regimen's logs.

    Raises:
        NotFound: the regimen does not exist for this user.
        ValidationError: the edit clears a required field or inverts the window.
        StorageError: the edit or the reconciliation could not be stored.
    """
    regimen = get_regimen(db, user_id, regimen_id)
    changes = payload.model_dump(exclude_unset=True)

    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be cleared")

    start_date = changes.get("start_date", regimen.start_date)
    end_date = changes.get("end_date", regimen.end_date)
    if start_date > end_date:
        raise ValidationError("start_date must be on or before end_date")

    try:
        for field, value in changes.items():
            setattr(regimen, field, value)
        db.commit()
        db.refresh(regimen)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update regimen {regimen_id}: {e}")
        raise StorageError("Could not save the regimen.") from e

    logger.info(f"Updated regimen {regimen.id}: {sorted(changes)}")

    reconcile(db, regimen, clock)
    db.refresh(regimen)
    return regimen


def delete_regimen(db: Session, user_id: int, regimen_id: int) -> None:
    """Deletes a regimen. Its dose logs stay behind as orphans."""
    regimen = get_regimen(db, user_id, regimen_id)
    try:
        db.delete(regimen)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete regimen {regimen_id}: {e}")
        raise StorageError("Could not delete the regimen.") from e

    forget_regimen(regimen_id)
    logger.info(f"Deleted regimen {regimen_id} for user {user_id}.")
