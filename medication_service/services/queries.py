"""
Read-side views over regimens and dose logs.

Virtual views (today, upcoming, daily) come from expanding the schedule;
history views (monthly, progress, adherence) read persisted logs only. Logs
whose regimen has been deleted are dropped from every view by joining
against the regimens table.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from .. import models, schemas
from ..clock import Clock
from ..config import settings
from ..errors import ValidationError
from .regimens import list_regimens
from .schedule import expand, is_scheduled_on


def _month_bounds(year: int, month: int):
    if month < 1 or month > 12:
        raise ValidationError("month must be between 1 and 12")
    first = date(year, month, 1)
    last = first + relativedelta(months=1) - timedelta(days=1)
    return first, last


def _owned_logs(db: Session, user_id: int):
    """Logs of the user joined with their (still existing) regimen."""
    return (
        db.query(models.DoseLog, models.Regimen)
        .join(
            models.Regimen,
            (models.Regimen.id == models.DoseLog.regimen_id)
            & (models.Regimen.user_id == models.DoseLog.user_id),
        )
        .filter(models.DoseLog.user_id == user_id)
    )


def get_due_today(db: Session, user_id: int, clock: Clock) -> List[models.Regimen]:
    """Regimens with at least one dose due today."""
    today = clock.today()
    candidates = (
        db.query(models.Regimen)
        .filter(
            models.Regimen.user_id == user_id,
            models.Regimen.start_date <= today,
            models.Regimen.end_date >= today,
        )
        .order_by(models.Regimen.id)
        .all()
    )
    return [r for r in candidates if is_scheduled_on(r, today)]


def get_regimens_for_month(db: Session, user_id: int, year: int, month: int) -> List[models.Regimen]:
    """Regimens whose window overlaps the given month."""
    first, last = _month_bounds(year, month)
    return (
        db.query(models.Regimen)
        .filter(
            models.Regimen.user_id == user_id,
            models.Regimen.start_date <= last,
            models.Regimen.end_date >= first,
        )
        .order_by(models.Regimen.id)
        .all()
    )


def get_daily_log(db: Session, user_id: int, day: date) -> List[schemas.DailyLogEntry]:
    """
    Every dose due on `day`, merged with the logs stored for that day.

    Doses without a log report as not taken. Logs that no longer match the
    current schedule (e.g. history from before an edit) are still listed.
    Sorted by time, then regimen.
    """
    entries: Dict[tuple, schemas.DailyLogEntry] = {}
    for regimen in list_regimens(db, user_id):
        for obligation in expand(regimen, day, day):
            entries[(regimen.id, obligation.time)] = schemas.DailyLogEntry(
                regimen_id=regimen.id,
                name=regimen.name,
                dosage=regimen.dosage,
                date=day,
                time=obligation.time,
            )

    for log, regimen in _owned_logs(db, user_id).filter(models.DoseLog.date == day).all():
        entries[(regimen.id, log.time)] = schemas.DailyLogEntry(
            regimen_id=regimen.id,
            name=regimen.name,
            dosage=regimen.dosage,
            date=day,
            time=log.time,
            taken=log.taken,
            taken_at=log.taken_at,
            log_id=log.id,
        )

    return sorted(entries.values(), key=lambda e: (e.time, e.regimen_id))


def get_logs_by_date(db: Session, user_id: int, day: date) -> List[schemas.DoseLogWithRegimen]:
    """Persisted logs for one day with their regimen's name and dosage."""
    rows = (
        _owned_logs(db, user_id)
        .filter(models.DoseLog.date == day)
        .order_by(models.DoseLog.time, models.DoseLog.regimen_id)
        .all()
    )
    return [
        schemas.DoseLogWithRegimen(
            **schemas.DoseLogResponse.model_validate(log).model_dump(),
            name=regimen.name,
            dosage=regimen.dosage,
        )
        for log, regimen in rows
    ]


def get_monthly_log(db: Session, user_id: int, year: int, month: int) -> schemas.MonthlyLogResponse:
    """Persisted logs for a month, grouped by ISO date."""
    first, last = _month_bounds(year, month)
    rows = (
        _owned_logs(db, user_id)
        .filter(models.DoseLog.date >= first, models.DoseLog.date <= last)
        .order_by(models.DoseLog.date, models.DoseLog.time, models.DoseLog.regimen_id)
        .all()
    )

    grouped = defaultdict(list)
    for log, regimen in rows:
        grouped[log.date.isoformat()].append(schemas.MonthlyLogEntry(
            log_id=log.id,
            regimen_id=regimen.id,
            name=regimen.name,
            dosage=regimen.dosage,
            time=log.time,
            taken=log.taken,
            taken_at=log.taken_at,
        ))
    return dict(grouped)


def _percent(taken: int, total: int) -> float:
    return round(taken / total * 100, 2) if total else 0


def get_progress(db: Session, user_id: int) -> schemas.ProgressResponse:
    """Share of all persisted doses that were taken."""
    logs = [log for log, _ in _owned_logs(db, user_id).all()]
    total = len(logs)
    taken = sum(1 for log in logs if log.taken)
    return schemas.ProgressResponse(
        total_doses=total,
        taken_doses=taken,
        progress_percent=_percent(taken, total),
    )


def get_upcoming(db: Session, user_id: int, clock: Clock, hours_ahead: Optional[int] = None) -> List[schemas.UpcomingDose]:
    """Today's doses falling strictly between now and now + hours_ahead."""
    if hours_ahead is None:
        hours_ahead = settings.DEFAULT_UPCOMING_HOURS
    if hours_ahead < 0:
        raise ValidationError("hours must not be negative")

    now = clock.now()
    today = clock.today()
    until = now + timedelta(hours=hours_ahead)

    upcoming = []
    for regimen in get_due_today(db, user_id, clock):
        for obligation in expand(regimen, today, today):
            due = datetime.combine(today, datetime.strptime(obligation.time, "%H:%M").time())
            if now < due < until:
                upcoming.append(schemas.UpcomingDose(
                    regimen_id=regimen.id,
                    name=regimen.name,
                    dosage=regimen.dosage,
                    time=obligation.time,
                ))
    return sorted(upcoming, key=lambda d: (d.time, d.regimen_id))


def get_refill_warnings(db: Session, user_id: int, threshold_days: Optional[int] = None) -> List[schemas.RefillWarning]:
    """
    Stock estimates for regimens tracking both tablets and daily doses.

    days_left = tablets_remaining // doses_per_day; a regimen needs a refill
    when fewer than `threshold_days` days remain.
    """
    if threshold_days is None:
        threshold_days = settings.REFILL_WARNING_DAYS

    warnings = []
    for regimen in list_regimens(db, user_id):
        if not regimen.tablets_remaining or not regimen.doses_per_day:
            continue
        days_left = regimen.tablets_remaining // regimen.doses_per_day
        warnings.append(schemas.RefillWarning(
            regimen_id=regimen.id,
            name=regimen.name,
            tablets_remaining=regimen.tablets_remaining,
            doses_per_day=regimen.doses_per_day,
            days_left=days_left,
            refill_needed=days_left < threshold_days,
        ))
    return warnings


def get_adherence_summary(db: Session, user_id: int, clock: Clock, days: int = 7) -> schemas.AdherenceSummaryResponse:
    """Per-regimen taken/total counts over the last `days` days, today included."""
    if days < 1:
        raise ValidationError("days must be at least 1")

    end = clock.today()
    start = end - timedelta(days=days - 1)
    rows = (
        _owned_logs(db, user_id)
        .filter(models.DoseLog.date >= start, models.DoseLog.date <= end)
        .all()
    )

    totals = defaultdict(lambda: [0, 0])
    names = {}
    for log, regimen in rows:
        names[regimen.id] = regimen.name
        totals[regimen.id][0] += 1
        if log.taken:
            totals[regimen.id][1] += 1

    return schemas.AdherenceSummaryResponse(
        start_date=start,
        end_date=end,
        regimens=[
            schemas.AdherenceEntry(
                regimen_id=regimen_id,
                name=names[regimen_id],
                total_doses=total,
                taken_doses=taken,
                adherence_percent=_percent(taken, total),
            )
            for regimen_id, (total, taken) in sorted(totals.items())
        ],
    )
