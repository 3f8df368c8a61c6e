"""
Tests for the read-side views.
"""

from datetime import date, datetime

import pytest

from medication_service import models
from medication_service.errors import ValidationError
from medication_service.services import dose_state, queries, regimens

USER_ID = 1


def test_daily_log_merges_schedule_with_logs(db, make_regimen, clock):
    regimen = make_regimen()
    dose_state.mark_taken(db, USER_ID, regimen.id, "08:00", clock)

    entries = queries.get_daily_log(db, USER_ID, date(2026, 3, 2))

    assert [(e.time, e.taken) for e in entries] == [("08:00", True), ("20:00", False)]
    assert entries[0].taken_at == datetime(2026, 3, 2, 9, 30)
    assert entries[1].taken_at is None


def test_daily_log_reports_unlogged_obligations_as_pending(db, make_regimen):
    regimen = make_regimen()
    db.query(models.DoseLog).delete()
    db.commit()

    entries = queries.get_daily_log(db, USER_ID, date(2026, 3, 3))

    assert [(e.regimen_id, e.time, e.taken, e.log_id) for e in entries] == [
        (regimen.id, "08:00", False, None),
        (regimen.id, "20:00", False, None),
    ]


def test_daily_log_sorts_across_regimens(db, make_regimen):
    make_regimen(name="Evening", daily_times=["21:00"])
    make_regimen(name="Morning", daily_times=["07:00", "12:00"])

    entries = queries.get_daily_log(db, USER_ID, date(2026, 3, 2))

    assert [(e.name, e.time) for e in entries] == [
        ("Morning", "07:00"), ("Morning", "12:00"), ("Evening", "21:00")
    ]


def test_daily_log_is_scoped_to_owner(db, make_regimen):
    make_regimen(user_id=2)

    assert queries.get_daily_log(db, USER_ID, date(2026, 3, 2)) == []


def test_monthly_log_groups_persisted_logs_by_date(db, make_regimen, clock):
    regimen = make_regimen(end_date=date(2026, 3, 3))
    dose_state.mark_taken(db, USER_ID, regimen.id, "20:00", clock)

    month = queries.get_monthly_log(db, USER_ID, 2026, 3)

    assert sorted(month) == ["2026-03-02", "2026-03-03"]
    assert [(e.time, e.taken) for e in month["2026-03-02"]] == [("08:00", False), ("20:00", True)]


def test_monthly_log_drops_deleted_regimens(db, make_regimen):
    kept = make_regimen(end_date=date(2026, 3, 2))
    gone = make_regimen(name="Gone", end_date=date(2026, 3, 2))
    regimens.delete_regimen(db, USER_ID, gone.id)

    month = queries.get_monthly_log(db, USER_ID, 2026, 3)

    assert {e.regimen_id for e in month["2026-03-02"]} == {kept.id}


def test_monthly_log_excludes_other_months(db, make_regimen):
    make_regimen(start_date=date(2026, 2, 27), end_date=date(2026, 3, 2), daily_times=["08:00"])

    assert sorted(queries.get_monthly_log(db, USER_ID, 2026, 2)) == ["2026-02-27", "2026-02-28"]


def test_monthly_log_rejects_bad_month(db):
    with pytest.raises(ValidationError):
        queries.get_monthly_log(db, USER_ID, 2026, 13)


def test_progress_counts_taken_share(db, make_regimen, clock):
    regimen = make_regimen()
    dose_state.mark_taken(db, USER_ID, regimen.id, "08:00", clock)

    progress = queries.get_progress(db, USER_ID)

    assert progress.total_doses == 10
    assert progress.taken_doses == 1
    assert progress.progress_percent == 10.0


def test_progress_rounds_to_two_decimals(db, make_regimen, clock):
    regimen = make_regimen(end_date=date(2026, 3, 2), daily_times=["08:00", "12:00", "20:00"])
    dose_state.mark_taken(db, USER_ID, regimen.id, "08:00", clock)

    assert queries.get_progress(db, USER_ID).progress_percent == 33.33


def test_progress_without_logs_is_zero(db):
    progress = queries.get_progress(db, USER_ID)

    assert progress.total_doses == 0
    assert progress.progress_percent == 0


def test_upcoming_is_strictly_inside_the_horizon(db, make_regimen, clock):
    make_regimen(daily_times=["08:00", "09:30", "10:00", "13:00", "13:30", "14:00"])

    upcoming = queries.get_upcoming(db, USER_ID, clock, 4)

    assert [d.time for d in upcoming] == ["10:00", "13:00"]


def test_upcoming_skips_regimens_not_due_today(db, make_regimen, clock):
    make_regimen(daily_times=["10:00"], recurrence_days=[2])

    assert queries.get_upcoming(db, USER_ID, clock, 4) == []


def test_due_today_filters_window_and_weekday(db, make_regimen, clock):
    monday = make_regimen(name="Monday only", recurrence_days=[1])
    make_regimen(name="Tuesday only", recurrence_days=[2])
    make_regimen(name="Next week", start_date=date(2026, 3, 9), end_date=date(2026, 3, 12))
    daily = make_regimen(name="Daily")

    due = queries.get_due_today(db, USER_ID, clock)

    assert [r.id for r in due] == [monday.id, daily.id]


def test_refill_warnings(db, make_regimen):
    low = make_regimen(name="Low", tablets_remaining=3, doses_per_day=2)
    plenty = make_regimen(name="Plenty", tablets_remaining=10, doses_per_day=2)
    make_regimen(name="Untracked", tablets_remaining=10, doses_per_day=None)
    make_regimen(name="Empty", tablets_remaining=0, doses_per_day=2)

    warnings = {w.regimen_id: w for w in queries.get_refill_warnings(db, USER_ID)}

    assert set(warnings) == {low.id, plenty.id}
    assert (warnings[low.id].days_left, warnings[low.id].refill_needed) == (1, True)
    assert (warnings[plenty.id].days_left, warnings[plenty.id].refill_needed) == (5, False)


def test_regimens_for_month_uses_window_overlap(db, make_regimen):
    march = make_regimen()
    make_regimen(name="April", start_date=date(2026, 4, 1), end_date=date(2026, 4, 10))
    spanning = make_regimen(name="Long", start_date=date(2026, 1, 1), end_date=date(2026, 12, 31))

    found = queries.get_regimens_for_month(db, USER_ID, 2026, 3)

    assert [r.id for r in found] == [march.id, spanning.id]


def test_logs_by_date_include_regimen_details(db, make_regimen, clock):
    regimen = make_regimen()
    dose_state.mark_taken(db, USER_ID, regimen.id, "08:00", clock)

    logs = queries.get_logs_by_date(db, USER_ID, date(2026, 3, 2))

    assert [(log.time, log.taken, log.name, log.dosage) for log in logs] == [
        ("08:00", True, "Amoxicillin", "1 tablet"),
        ("20:00", False, "Amoxicillin", "1 tablet"),
    ]


def test_adherence_summary_covers_last_days(db, make_regimen, clock):
    regimen = make_regimen(start_date=date(2026, 2, 20), end_date=date(2026, 3, 2), daily_times=["08:00"])
    dose_state.mark_taken(db, USER_ID, regimen.id, "08:00", clock)

    summary = queries.get_adherence_summary(db, USER_ID, clock, days=4)

    assert (summary.start_date, summary.end_date) == (date(2026, 2, 27), date(2026, 3, 2))
    assert len(summary.regimens) == 1
    entry = summary.regimens[0]
    assert (entry.total_doses, entry.taken_doses, entry.adherence_percent) == (4, 1, 25.0)


def test_adherence_summary_rejects_empty_range(db, clock):
    with pytest.raises(ValidationError):
        queries.get_adherence_summary(db, USER_ID, clock, days=0)
