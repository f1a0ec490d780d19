"""Maintenance log router."""
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import Any, Dict, Optional
from datetime import date

from furnacelog.db.config import get_session
from furnacelog.dependencies import get_owned_home
from furnacelog.models.home import Home
from furnacelog.schemas.maintenance import MaintenanceLogCreate, MaintenanceLogResponse
from furnacelog.services.maintenance_log_service import MaintenanceLogService

router = APIRouter(tags=["Maintenance"])


def get_log_service(session: Session = Depends(get_session)) -> MaintenanceLogService:
    """Dependency for getting MaintenanceLogService instance."""
    return MaintenanceLogService(session)


@router.post("/homes/{home_id}/logs", response_model=MaintenanceLogResponse, status_code=status.HTTP_201_CREATED)
async def create_log(
    log_data: MaintenanceLogCreate,
    home: Home = Depends(get_owned_home),
    service: MaintenanceLogService = Depends(get_log_service),
):
    """Record maintenance that was performed outside the schedule."""
    return service.record(home.id, log_data)


@router.get("/homes/{home_id}/logs", response_model=Dict[str, Any])
async def list_logs(
    home: Home = Depends(get_owned_home),
    service: MaintenanceLogService = Depends(get_log_service),
    system_id: Optional[str] = Query(None, description="Only entries for this system"),
    start: Optional[date] = Query(None, description="Performed on or after this date"),
    end: Optional[date] = Query(None, description="Performed on or before this date"),
):
    """List maintenance log entries ordered by date performed."""
    logs = service.list_for_home(home.id, system_id=system_id, start=start, end=end)
    return {
        "logs": [MaintenanceLogResponse.model_validate(log) for log in logs],
        "count": len(logs),
    }
