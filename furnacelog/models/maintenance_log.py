"""Maintenance log model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint
from datetime import date, datetime
from typing import Optional


class MaintenanceLog(SQLModel, table=True):
    """
    Record of maintenance that was actually performed.

    Rows are append-only: they are created when work is logged and are
    never regenerated by the scheduler.
    """

    __tablename__ = "maintenance_log"
    __table_args__ = (
        CheckConstraint("parts_cost >= 0 AND labor_cost >= 0 AND other_cost >= 0", name="ck_log_costs_non_negative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    home_id: int = Field(foreign_key="home.id", index=True)
    system_id: str = Field(max_length=100, index=True)
    system_name: Optional[str] = Field(default=None, max_length=200)  # e.g. "Oil furnace"
    system_type: Optional[str] = Field(default=None, max_length=50)  # e.g. furnace, hrv, heat-trace
    occurrence_id: Optional[int] = Field(default=None, foreign_key="scheduled_occurrence.id")

    performed_on: date = Field(index=True)
    parts_cost: float = Field(default=0.0)
    labor_cost: float = Field(default=0.0)
    other_cost: float = Field(default=0.0)
    notes: Optional[str] = Field(default=None, max_length=5000)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def total_cost(self) -> float:
        return (self.parts_cost or 0.0) + (self.labor_cost or 0.0) + (self.other_cost or 0.0)

    @property
    def system_label(self) -> str:
        return self.system_name or self.system_id
