"""Weather observation model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint
from datetime import date, datetime
from typing import Any, Dict, List, Optional


class WeatherObservation(SQLModel, table=True):
    """Daily weather for a community, one row per (community, date)."""

    __tablename__ = "weather_observation"
    __table_args__ = (
        UniqueConstraint("community", "observed_on", name="uq_weather_community_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    community: str = Field(max_length=100, index=True)
    observed_on: date = Field(index=True)

    temp_high: float  # °C
    temp_low: float  # °C
    temp_mean: float  # °C
    precipitation_mm: float = Field(default=0.0)
    snowfall_cm: float = Field(default=0.0)
    wind_speed_kmh: float = Field(default=0.0)
    wind_chill: Optional[float] = Field(default=None)

    # [{"type": "cold-snap", "severity": "severe", "description": "..."}]
    extreme_events: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
