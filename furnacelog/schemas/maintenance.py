"""Maintenance log schemas."""
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional


class MaintenanceLogCreate(BaseModel):
    """Schema for logging maintenance that has already been performed."""
    system_id: str = Field(..., min_length=1, max_length=100)
    system_name: Optional[str] = Field(None, max_length=200)
    system_type: Optional[str] = Field(None, max_length=50)
    performed_on: date
    parts_cost: float = Field(0.0, ge=0)
    labor_cost: float = Field(0.0, ge=0)
    other_cost: float = Field(0.0, ge=0)
    notes: Optional[str] = Field(None, max_length=5000)


class MaintenanceLogResponse(BaseModel):
    """Schema for maintenance log API responses."""
    id: int
    home_id: int
    system_id: str
    system_name: Optional[str] = None
    system_type: Optional[str] = None
    occurrence_id: Optional[int] = None
    performed_on: date
    parts_cost: float
    labor_cost: float
    other_cost: float
    total_cost: float
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
