"""Recurring series and scheduled occurrence models for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from datetime import date, datetime
from enum import Enum
from typing import Optional

from furnacelog.scheduling.rules import RecurrenceRule


class OccurrenceStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OccurrenceStatus.COMPLETED.value, OccurrenceStatus.CANCELLED.value})


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecurringSeries(SQLModel, table=True):
    """
    A recurring maintenance task.

    The rule columns and anchor date are written once at creation and never
    updated; every occurrence of the series is derived from them.
    """

    __tablename__ = "recurring_series"

    id: Optional[int] = Field(default=None, primary_key=True)
    home_id: int = Field(foreign_key="home.id", index=True)
    system_id: Optional[str] = Field(default=None, max_length=100, index=True)
    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, max_length=1000)
    priority: str = Field(default=Priority.MEDIUM.value, max_length=20)  # low, medium, high
    anchor_date: date

    # Persisted RecurrenceRule: at most one of end_date / occurrence_count is set
    frequency: str = Field(max_length=20)  # daily, weekly, monthly, quarterly, annually
    interval: int = Field(default=1)
    end_date: Optional[date] = Field(default=None)
    occurrence_count: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def rule(self) -> RecurrenceRule:
        return RecurrenceRule.from_columns(
            self.frequency, self.interval, self.end_date, self.occurrence_count
        )


class ScheduledOccurrence(SQLModel, table=True):
    """One concrete due date, either one-off or part of a series."""

    __tablename__ = "scheduled_occurrence"
    __table_args__ = (
        UniqueConstraint("series_id", "sequence_index", name="uq_occurrence_series_index"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    home_id: int = Field(foreign_key="home.id", index=True)
    series_id: Optional[int] = Field(default=None, foreign_key="recurring_series.id", index=True)
    sequence_index: Optional[int] = Field(default=None)  # 0-based position in the series
    system_id: Optional[str] = Field(default=None, max_length=100)
    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, max_length=1000)

    due_date: date = Field(index=True)
    original_due_date: Optional[date] = Field(default=None)  # date computed from the series rule
    status: str = Field(default=OccurrenceStatus.PENDING.value, max_length=20, index=True)
    priority: str = Field(default=Priority.MEDIUM.value, max_length=20)

    completed_at: Optional[datetime] = Field(default=None)
    completed_on: Optional[date] = Field(default=None)
    completed_log_id: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def was_rescheduled(self) -> bool:
        return self.original_due_date is not None and self.original_due_date != self.due_date
