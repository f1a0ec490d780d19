"""Timeline router: the climate time machine and history insights."""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import List, Optional
from datetime import date, timedelta

from furnacelog.analysis.correlation import WeatherCorrelator
from furnacelog.analysis.patterns import PatternDetector
from furnacelog.analysis.timeline import TimelineAggregator
from furnacelog.db.config import get_session
from furnacelog.dependencies import get_owned_home
from furnacelog.models.home import Home
from furnacelog.schemas.analysis import CorrelationReport, CostBucket, PatternInsights, Timeline, WeatherAnalysis
from furnacelog.services.maintenance_log_service import MaintenanceLogService
from furnacelog.services.weather_service import WeatherService
from furnacelog.utils.clock import resolve_today

router = APIRouter(prefix="/timeline", tags=["Timeline"])


@router.get("/{home_id}", response_model=Timeline)
async def get_timeline(
    start: date = Query(..., description="First day of the range"),
    end: Optional[date] = Query(None, description="Last day of the range; defaults to today"),
    granularity: str = Query("day", description="day, week or month"),
    home: Home = Depends(get_owned_home),
    session: Session = Depends(get_session),
):
    """Weather and maintenance side by side, bucketed over a date range."""
    end = end or resolve_today(home)
    observations = WeatherService(session).for_range(home.community, start, end)
    entries = MaintenanceLogService(session).list_for_home(home.id, start=start, end=end)
    return TimelineAggregator().aggregate(observations, entries, start, end, granularity)


@router.get("/{home_id}/patterns", response_model=PatternInsights)
async def get_patterns(
    home: Home = Depends(get_owned_home),
    session: Session = Depends(get_session),
):
    """Recurring maintenance intervals detected from the full log history."""
    entries = MaintenanceLogService(session).list_for_home(home.id)
    return PatternDetector().analyze(entries)


@router.get("/{home_id}/correlations", response_model=CorrelationReport)
async def get_correlations(
    start: Optional[date] = Query(None, description="Only maintenance on or after this date"),
    end: Optional[date] = Query(None, description="Only maintenance on or before this date"),
    lookback_days: Optional[int] = Query(None, ge=0, description="Days a cold snap may precede maintenance"),
    home: Home = Depends(get_owned_home),
    session: Session = Depends(get_session),
):
    """Maintenance performed after cold snaps, on bitterly cold days, and by season."""
    correlator = WeatherCorrelator()
    lookback = correlator.config.lookback_days if lookback_days is None else lookback_days
    entries = MaintenanceLogService(session).list_for_home(home.id, start=start, end=end)

    # Weather starts early enough to cover the lookback of the first entry
    weather_from = None
    if entries:
        weather_from = entries[0].performed_on - timedelta(days=lookback)
    observations = WeatherService(session).for_range(home.community, weather_from, end)
    return correlator.correlate(entries, observations, lookback)


@router.get("/{home_id}/weather", response_model=WeatherAnalysis)
async def get_weather_analysis(
    start: Optional[date] = Query(None, description="First day of the range"),
    end: Optional[date] = Query(None, description="Last day of the range; defaults to today"),
    home: Home = Depends(get_owned_home),
    session: Session = Depends(get_session),
):
    """Coldest and warmest days, extreme events and cold-snap periods for the home's community."""
    end = end or resolve_today(home)
    observations = WeatherService(session).for_range(home.community, start, end)
    return WeatherCorrelator().analyze_weather(observations)


@router.get("/{home_id}/costs", response_model=List[CostBucket])
async def get_costs(
    group_by: str = Query("month", description="month or year"),
    home: Home = Depends(get_owned_home),
    session: Session = Depends(get_session),
):
    """Maintenance spend per period and system."""
    entries = MaintenanceLogService(session).list_for_home(home.id)
    return TimelineAggregator().cost_breakdown(entries, group_by)
