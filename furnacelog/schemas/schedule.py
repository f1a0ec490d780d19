"""Schedule schemas for one-off occurrences and recurring series."""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import List, Literal, Optional

from furnacelog.models.schedule import Priority
from furnacelog.scheduling.rules import RecurrenceRule
from furnacelog.schemas.maintenance import MaintenanceLogCreate, MaintenanceLogResponse


class OccurrenceCreate(BaseModel):
    """Schema for scheduling a one-off maintenance task."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    system_id: Optional[str] = Field(None, max_length=100)
    priority: Priority = Priority.MEDIUM
    due_date: date


class SeriesCreate(BaseModel):
    """Schema for creating a recurring series from a rule, an anchor and a task template."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    system_id: Optional[str] = Field(None, max_length=100)
    priority: Priority = Priority.MEDIUM
    anchor_date: date
    recurrence: RecurrenceRule
    materialize_count: Optional[int] = Field(None, ge=1)  # defaults to DEFAULT_MATERIALIZE_COUNT


class SeriesPatch(BaseModel):
    """Schema for editing the task template of a series; its rule and anchor are fixed."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[Priority] = None


class PreviewRequest(BaseModel):
    """Schema for previewing the first dates of a prospective series."""
    anchor_date: date
    recurrence: RecurrenceRule


class PreviewResponse(BaseModel):
    dates: List[date]
    truncated: bool  # more dates follow the preview
    warnings: List[str] = []


class MaterializeRequest(BaseModel):
    """Schema for appending the next batch of occurrences to a series."""
    count: int = Field(..., ge=1)


class OccurrencePatch(BaseModel):
    """Schema for editing a single occurrence."""
    due_date: Optional[date] = None
    priority: Optional[Priority] = None
    status: Optional[Literal["cancelled"]] = None  # completion goes through /complete


class OccurrenceComplete(BaseModel):
    """Schema for completing an occurrence, optionally logging the work done."""
    completed_on: Optional[date] = None
    log: Optional[MaintenanceLogCreate] = None


class OccurrenceResponse(BaseModel):
    """Schema for occurrence API responses."""
    id: int
    home_id: int
    series_id: Optional[int] = None
    sequence_index: Optional[int] = None
    system_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    due_date: date
    original_due_date: Optional[date] = None
    status: str
    priority: str
    completed_at: Optional[datetime] = None
    completed_on: Optional[date] = None
    completed_log_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SeriesResponse(BaseModel):
    """Schema for recurring series API responses."""
    id: int
    home_id: int
    system_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    priority: str
    anchor_date: date
    recurrence: RecurrenceRule
    created_at: datetime


class SeriesCreateResponse(BaseModel):
    series: SeriesResponse
    occurrences: List[OccurrenceResponse]
    truncated: bool  # the series continues past the materialized occurrences
    warnings: List[str] = []


class SeriesDetailResponse(BaseModel):
    series: SeriesResponse
    occurrences: List[OccurrenceResponse]
    materialized: int


class MaterializeResponse(BaseModel):
    occurrences: List[OccurrenceResponse]
    truncated: bool
    warnings: List[str] = []


class CompletionResponse(BaseModel):
    occurrence: OccurrenceResponse
    log: Optional[MaintenanceLogResponse] = None
