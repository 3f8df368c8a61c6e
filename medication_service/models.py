"""
Defines the SQLAlchemy ORM models for the database.

Each class in this file represents a table in the database and its columns.
"""

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, JSON, Boolean, Text, UniqueConstraint, func
)
from .database import Base


class Regimen(Base):
    """
    Represents the 'regimens' table: one recurring medication schedule
    owned by a user.
    """
    __tablename__ = "regimens"
    # Ids are never reused, so orphaned dose logs cannot attach to a new regimen
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True, nullable=False)

    # What is being taken
    name = Column(String, nullable=False)
    dosage = Column(String, nullable=True)  # e.g., "1 tablet", "10ml"
    notes = Column(Text, nullable=True)

    # Inclusive calendar window
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Sorted "HH:MM" labels and optional weekday filter (0 = Sunday .. 6 = Saturday)
    daily_times = Column(JSON, nullable=False, default=list)
    recurrence_days = Column(JSON, nullable=True)

    # Stock and refill arithmetic
    tablets_remaining = Column(Integer, nullable=False, default=0)
    doses_per_day = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DoseLog(Base):
    """
    Represents the 'dose_logs' table: the fulfillment record of one
    scheduled dose.

    regimen_id is a plain column, not a foreign key: deleting a regimen
    orphans its logs, and read queries join against 'regimens' to hide them.
    """
    __tablename__ = "dose_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "regimen_id", "date", "time", name="uq_dose_logs_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True, nullable=False)
    regimen_id = Column(Integer, index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    time = Column(String(5), nullable=False)  # "08:00"

    taken = Column(Boolean, nullable=False, default=False)
    taken_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
