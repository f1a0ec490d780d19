"""Schedule router: one-off tasks, recurring series and occurrence edits."""
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import Any, Dict, Optional
from datetime import date

from furnacelog.db.config import get_session
from furnacelog.dependencies import get_owned_home
from furnacelog.models.home import Home
from furnacelog.models.schedule import OccurrenceStatus, RecurringSeries
from furnacelog.schemas.maintenance import MaintenanceLogResponse
from furnacelog.schemas.schedule import (
    CompletionResponse,
    MaterializeRequest,
    MaterializeResponse,
    OccurrenceComplete,
    OccurrenceCreate,
    OccurrencePatch,
    OccurrenceResponse,
    PreviewRequest,
    PreviewResponse,
    SeriesCreate,
    SeriesCreateResponse,
    SeriesDetailResponse,
    SeriesPatch,
    SeriesResponse,
)
from furnacelog.services.schedule_service import ScheduleService
from furnacelog.utils.clock import resolve_today

router = APIRouter(tags=["Schedule"])


def get_schedule_service(session: Session = Depends(get_session)) -> ScheduleService:
    """Dependency for getting ScheduleService instance."""
    return ScheduleService(session)


def series_response(series: RecurringSeries) -> SeriesResponse:
    return SeriesResponse(
        id=series.id,
        home_id=series.home_id,
        system_id=series.system_id,
        title=series.title,
        description=series.description,
        priority=series.priority,
        anchor_date=series.anchor_date,
        recurrence=series.rule,
        created_at=series.created_at,
    )


@router.post("/homes/{home_id}/schedule", response_model=OccurrenceResponse, status_code=status.HTTP_201_CREATED)
async def create_occurrence(
    occurrence_data: OccurrenceCreate,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Schedule a one-off maintenance task."""
    return service.create_occurrence(
        home_id=home.id,
        title=occurrence_data.title,
        due_date=occurrence_data.due_date,
        description=occurrence_data.description,
        system_id=occurrence_data.system_id,
        priority=occurrence_data.priority,
    )


@router.post("/homes/{home_id}/schedule/series", response_model=SeriesCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_series(
    series_data: SeriesCreate,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Create a recurring series and materialize its first occurrences."""
    series, occurrences, expansion = service.create_series(
        home_id=home.id,
        title=series_data.title,
        anchor_date=series_data.anchor_date,
        rule=series_data.recurrence,
        description=series_data.description,
        system_id=series_data.system_id,
        priority=series_data.priority,
        materialize_count=series_data.materialize_count,
    )
    return SeriesCreateResponse(
        series=series_response(series),
        occurrences=[OccurrenceResponse.model_validate(o) for o in occurrences],
        truncated=expansion.truncated,
        warnings=expansion.warnings,
    )


@router.post("/homes/{home_id}/schedule/preview", response_model=PreviewResponse)
async def preview_series(
    preview_data: PreviewRequest,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Show the first dates a recurrence would produce without saving anything."""
    expansion = service.preview(preview_data.recurrence, preview_data.anchor_date)
    return PreviewResponse(dates=expansion.dates, truncated=expansion.truncated, warnings=expansion.warnings)


@router.get("/homes/{home_id}/schedule/series/{series_id}", response_model=SeriesDetailResponse)
async def get_series(
    series_id: int,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Get a series with its materialized occurrences."""
    series = service.get_series(home.id, series_id)
    occurrences = service.list_occurrences(home.id, series_id=series_id)
    return SeriesDetailResponse(
        series=series_response(series),
        occurrences=[OccurrenceResponse.model_validate(o) for o in occurrences],
        materialized=service.materialized_count(series_id),
    )


@router.patch("/homes/{home_id}/schedule/series/{series_id}", response_model=SeriesResponse)
async def patch_series(
    series_id: int,
    patch: SeriesPatch,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Edit a series' title, description or priority; its rule and anchor cannot change."""
    return series_response(service.update_series(home.id, series_id, patch))


@router.get("/homes/{home_id}/schedule", response_model=Dict[str, Any])
async def list_occurrences(
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
    status_filter: Optional[OccurrenceStatus] = Query(None, alias="status", description="pending, completed or cancelled"),
    series_id: Optional[int] = Query(None, description="Only occurrences of this series"),
    due_from: Optional[date] = Query(None, description="Due on or after this date"),
    due_to: Optional[date] = Query(None, description="Due on or before this date"),
):
    """List scheduled occurrences ordered by due date."""
    occurrences = service.list_occurrences(
        home_id=home.id,
        status=status_filter,
        series_id=series_id,
        due_from=due_from,
        due_to=due_to,
    )
    return {
        "occurrences": [OccurrenceResponse.model_validate(o) for o in occurrences],
        "count": len(occurrences),
    }


@router.get("/homes/{home_id}/schedule/{occurrence_id}", response_model=OccurrenceResponse)
async def get_occurrence(
    occurrence_id: int,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Get a single occurrence."""
    return service.get_occurrence(home.id, occurrence_id)


@router.patch("/homes/{home_id}/schedule/{occurrence_id}", response_model=OccurrenceResponse)
async def patch_occurrence(
    occurrence_id: int,
    patch: OccurrencePatch,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Reschedule, reprioritize or cancel one occurrence; siblings are untouched."""
    occurrence = service.get_occurrence(home.id, occurrence_id)
    return service.apply_patch(occurrence, patch, resolve_today(home))


@router.post("/homes/{home_id}/schedule/{occurrence_id}/complete", response_model=CompletionResponse)
async def complete_occurrence(
    occurrence_id: int,
    completion: Optional[OccurrenceComplete] = None,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Mark an occurrence completed, optionally logging the work performed."""
    completion = completion or OccurrenceComplete()
    occurrence = service.get_occurrence(home.id, occurrence_id)
    occurrence, log = service.complete(
        occurrence,
        today=resolve_today(home),
        completed_on=completion.completed_on,
        log_data=completion.log,
    )
    return CompletionResponse(
        occurrence=OccurrenceResponse.model_validate(occurrence),
        log=MaintenanceLogResponse.model_validate(log) if log is not None else None,
    )


@router.post("/homes/{home_id}/schedule/series/{series_id}/materialize", response_model=MaterializeResponse)
async def materialize_series(
    series_id: int,
    request: MaterializeRequest,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Generate the next batch of occurrences for a series."""
    occurrences, expansion = service.materialize(home.id, series_id, request.count)
    return MaterializeResponse(
        occurrences=[OccurrenceResponse.model_validate(o) for o in occurrences],
        truncated=expansion.truncated,
        warnings=expansion.warnings,
    )


@router.patch("/homes/{home_id}/schedule/series/{series_id}/occurrences/{index}", response_model=OccurrenceResponse)
async def patch_series_occurrence(
    series_id: int,
    index: int,
    patch: OccurrencePatch,
    home: Home = Depends(get_owned_home),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Edit occurrence number ``index`` (0-based) of a series."""
    occurrence = service.get_series_occurrence(home.id, series_id, index)
    return service.apply_patch(occurrence, patch, resolve_today(home))
