"""Weather observation schemas."""
from pydantic import BaseModel, Field
from datetime import date
from typing import List, Literal, Optional

ExtremeEventType = Literal["cold-snap", "heat-wave", "blizzard", "high-wind", "ice-storm", "heavy-snow"]
Severity = Literal["moderate", "severe", "extreme"]


class ExtremeEvent(BaseModel):
    type: ExtremeEventType
    severity: Severity
    description: Optional[str] = None


class WeatherObservationCreate(BaseModel):
    """Schema for one day of observed weather."""
    observed_on: date
    temp_high: float
    temp_low: float
    temp_mean: float
    precipitation_mm: float = Field(0.0, ge=0)
    snowfall_cm: float = Field(0.0, ge=0)
    wind_speed_kmh: float = Field(0.0, ge=0)
    wind_chill: Optional[float] = None
    extreme_events: List[ExtremeEvent] = []


class WeatherObservationBatch(BaseModel):
    observations: List[WeatherObservationCreate] = Field(..., min_length=1)


class WeatherBatchResponse(BaseModel):
    community: str
    inserted: int
    updated: int
