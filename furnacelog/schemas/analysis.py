"""Schemas for derived history analysis: patterns, correlations and timelines."""
from pydantic import BaseModel, Field
from datetime import date
from typing import Dict, List, Literal, Optional

from furnacelog.schemas.weather import ExtremeEvent

Confidence = Literal["low", "medium", "high"]
Granularity = Literal["day", "week", "month"]


class Pattern(BaseModel):
    """A recurring maintenance interval detected for one system."""
    system: str
    system_id: str
    interval_days: float  # mean gap between consecutive log entries
    occurrences: int  # log entries used
    consistency: float  # 0-100, 100 means identical gaps
    confidence: Confidence
    description: str
    first_date: date
    last_date: date
    next_expected: date


class InsufficientHistory(BaseModel):
    """A system with too few entries to detect an interval."""
    system: str
    system_id: str
    occurrences: int
    required: int


class RecurringPatterns(BaseModel):
    recurring: List[Pattern] = []


class PatternInsights(BaseModel):
    patterns: RecurringPatterns
    insufficient_data: List[InsufficientHistory] = []
    analyzed_entries: int
    confidence: Confidence


class MaintenanceRef(BaseModel):
    log_id: Optional[int] = None
    system_id: str
    system: str
    system_type: Optional[str] = None
    performed_on: date
    cost: float


class Correlation(BaseModel):
    """A maintenance entry paired with the nearest preceding cold snap."""
    maintenance: MaintenanceRef
    cold_snap_date: date
    cold_snap_event: ExtremeEvent
    days_after: int


class TemperatureTriggered(BaseModel):
    """Maintenance performed on a day at or below the cold temperature threshold."""
    maintenance: MaintenanceRef
    temperature_low: float


class SeasonalAggregate(BaseModel):
    count: int = 0
    total_cost: float = 0.0
    systems: Dict[str, int] = {}


class CorrelationReport(BaseModel):
    lookback_days: int
    severity_threshold: str
    cold_snap_maintenance: List[Correlation] = []
    temperature_triggered: List[TemperatureTriggered] = []
    seasonal_patterns: Dict[str, SeasonalAggregate] = {}
    analyzed_entries: int
    analyzed_observations: int


class DayExtreme(BaseModel):
    observed_on: date
    temperature: float


class DatedExtremeEvent(ExtremeEvent):
    observed_on: date


class ColdSnapPeriod(BaseModel):
    start: date
    end: date
    days: int
    min_temp: float


class WeatherAnalysis(BaseModel):
    total_days: int
    coldest_day: Optional[DayExtreme] = None
    warmest_day: Optional[DayExtreme] = None
    average_temperature: Optional[float] = None
    precipitation_days: int = 0
    extreme_events: List[DatedExtremeEvent] = []
    cold_snaps: List[ColdSnapPeriod] = []


class WeatherSummary(BaseModel):
    """Weather over one timeline bucket; a day bucket summarizes a single observation."""
    high: float  # max of daily highs
    low: float  # min of daily lows
    mean: float  # mean of daily means
    precipitation_mm: float
    snowfall_cm: float
    observed_days: int
    extreme_events: List[DatedExtremeEvent] = []


class TimelineEntry(BaseModel):
    log_id: Optional[int] = None
    system_id: str
    system: str
    performed_on: date
    total_cost: float
    notes: Optional[str] = None


class PointSummary(BaseModel):
    maintenance_count: int
    total_cost: float
    temperature_mean: Optional[float] = None


class TimelinePoint(BaseModel):
    start: date
    end: date  # inclusive
    weather: Optional[WeatherSummary] = None
    maintenance: List[TimelineEntry] = []
    summary: PointSummary


class TimelineSummary(BaseModel):
    total_maintenance: int
    total_cost: float
    total_weather_days: int


class Timeline(BaseModel):
    start: date
    end: date
    granularity: Granularity
    points: List[TimelinePoint] = []
    summary: TimelineSummary


class CostBucket(BaseModel):
    period: str  # "2025-01" for month grouping, "2025" for year grouping
    system_id: str
    system: str
    total_cost: float
    count: int
    average_cost: float
