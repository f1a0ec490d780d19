"""Weather router: ingestion of daily observations per community."""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import Any, Dict, Optional
from datetime import date

from furnacelog.db.config import get_session
from furnacelog.middleware.auth import CurrentUser, get_current_user
from furnacelog.schemas.weather import WeatherBatchResponse, WeatherObservationBatch
from furnacelog.services.weather_service import WeatherService

router = APIRouter(prefix="/weather", tags=["Weather"])


@router.post("/{community}/observations", response_model=WeatherBatchResponse)
async def record_observations(
    community: str,
    batch: WeatherObservationBatch,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Insert or replace daily observations for a community."""
    inserted, updated = WeatherService(session).record_observations(community, batch.observations)
    return WeatherBatchResponse(community=community, inserted=inserted, updated=updated)


@router.get("/{community}/observations", response_model=Dict[str, Any])
async def list_observations(
    community: str,
    start: Optional[date] = Query(None, description="First day of the range"),
    end: Optional[date] = Query(None, description="Last day of the range"),
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """List stored observations for a community ordered by date."""
    observations = WeatherService(session).for_range(community, start, end)
    return {
        "community": community,
        "observations": [o.model_dump(exclude={"id", "created_at"}) for o in observations],
        "count": len(observations),
    }
