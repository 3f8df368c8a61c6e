"""
Defines Pydantic schemas for API data validation and serialization.

These schemas determine the shape of the data for API requests and responses,
ensuring that data is valid and formatted correctly.
"""

import re
from datetime import date as dt_date, datetime
from typing import Optional, List, Dict

from pydantic import BaseModel, Field, field_validator, model_validator

# Zero-padded 24-hour "HH:MM"; lexical order equals chronological order
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_valid_time_label(value) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def normalize_daily_times(times: List[str]) -> List[str]:
    """Validate a list of time labels and return it sorted."""
    for t in times:
        if not is_valid_time_label(t):
            raise ValueError(f"Invalid time '{t}'. Expected zero-padded HH:MM (24h).")
    if len(set(times)) != len(times):
        raise ValueError("daily_times must not contain duplicates")
    return sorted(times)


def normalize_recurrence_days(days: Optional[List[int]]) -> Optional[List[int]]:
    """Validate weekday indices (0 = Sunday .. 6 = Saturday) and return them sorted."""
    if days is None:
        return None
    for d in days:
        if d < 0 or d > 6:
            raise ValueError(f"Invalid weekday {d}. Expected 0 (Sunday) to 6 (Saturday).")
    return sorted(set(days))


# --- Regimen Schemas ---
class RegimenBase(BaseModel):
    """Base schema for a medication regimen."""
    name: str = Field(..., min_length=1, description="Medication name")
    dosage: Optional[str] = Field(None, description="Dosage instructions, e.g. '1 tablet'")
    notes: Optional[str] = None
    start_date: dt_date
    end_date: dt_date
    daily_times: List[str] = Field(..., description="Daily dose times in HH:MM 24h format")
    recurrence_days: Optional[List[int]] = Field(
        None, description="Weekdays (0=Sun..6=Sat); empty or missing means every day"
    )
    tablets_remaining: int = Field(0, ge=0)
    doses_per_day: Optional[int] = Field(None, ge=0)

    @field_validator("daily_times")
    def daily_times_must_be_valid(cls, v: List[str]) -> List[str]:
        return normalize_daily_times(v)

    @field_validator("recurrence_days")
    def recurrence_days_must_be_valid(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return normalize_recurrence_days(v)


class RegimenCreate(RegimenBase):
    """Schema for registering a new regimen."""

    @model_validator(mode="after")
    def window_must_be_ordered(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class RegimenUpdate(BaseModel):
    """Schema for editing a regimen. Only the fields that are sent are changed."""
    name: Optional[str] = Field(None, min_length=1)
    dosage: Optional[str] = None
    notes: Optional[str] = None
    start_date: Optional[dt_date] = None
    end_date: Optional[dt_date] = None
    daily_times: Optional[List[str]] = None
    recurrence_days: Optional[List[int]] = None
    tablets_remaining: Optional[int] = Field(None, ge=0)
    doses_per_day: Optional[int] = Field(None, ge=0)

    @field_validator("daily_times")
    def daily_times_must_be_valid(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return normalize_daily_times(v)

    @field_validator("recurrence_days")
    def recurrence_days_must_be_valid(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return normalize_recurrence_days(v)


class RegimenResponse(RegimenBase):
    """Schema for responding with a stored regimen."""
    id: int
    user_id: int
    recurrence_days: Optional[List[int]] = None

    class Config:
        from_attributes = True


# --- Dose Log Schemas ---
class DoseLogResponse(BaseModel):
    """Schema for a persisted dose log."""
    id: int
    user_id: int
    regimen_id: int
    date: dt_date
    time: str
    taken: bool
    taken_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DoseLogWithRegimen(DoseLogResponse):
    """A persisted dose log together with its regimen's name and dosage."""
    name: str
    dosage: Optional[str] = None


class MarkTakenRequest(BaseModel):
    """Schema for marking one dose as taken. The date defaults to today."""
    time: str
    date: Optional[dt_date] = None


class BulkMarkEntry(MarkTakenRequest):
    """One entry of a bulk mark-taken request."""
    regimen_id: int


class ErrorDetail(BaseModel):
    kind: str
    message: str


class BulkMarkResult(BaseModel):
    """Outcome of one bulk entry; entries succeed or fail independently."""
    regimen_id: int
    time: str
    ok: bool
    log: Optional[DoseLogResponse] = None
    error: Optional[ErrorDetail] = None


# --- Query Schemas ---
class DailyLogEntry(BaseModel):
    """One scheduled dose on a given day, merged with its log if one exists."""
    regimen_id: int
    name: str
    dosage: Optional[str] = None
    date: dt_date
    time: str
    taken: bool = False
    taken_at: Optional[datetime] = None
    log_id: Optional[int] = None


class MonthlyLogEntry(BaseModel):
    """A persisted dose log inside the monthly view."""
    log_id: int
    regimen_id: int
    name: str
    dosage: Optional[str] = None
    time: str
    taken: bool
    taken_at: Optional[datetime] = None


MonthlyLogResponse = Dict[str, List[MonthlyLogEntry]]


class ProgressResponse(BaseModel):
    """Share of persisted doses that were taken."""
    total_doses: int
    taken_doses: int
    progress_percent: float


class UpcomingDose(BaseModel):
    regimen_id: int
    name: str
    dosage: Optional[str] = None
    time: str


class RefillWarning(BaseModel):
    """Stock estimate for a regimen that tracks both tablets and daily doses."""
    regimen_id: int
    name: str
    tablets_remaining: int
    doses_per_day: int
    days_left: int
    refill_needed: bool


class AdherenceEntry(BaseModel):
    regimen_id: int
    name: str
    total_doses: int
    taken_doses: int
    adherence_percent: float


class AdherenceSummaryResponse(BaseModel):
    """Per-regimen adherence over the last N days, inclusive of today."""
    start_date: dt_date
    end_date: dt_date
    regimens: List[AdherenceEntry]
