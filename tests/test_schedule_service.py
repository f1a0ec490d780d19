"""Tests for the schedule and maintenance log services over an in-memory database."""
import pytest
from datetime import date
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from furnacelog.errors import (
    InvalidStateTransitionError,
    NotFoundError,
    OccurrenceNotMaterializedError,
    PastDueDateError,
    RecurrenceValidationError,
)
from furnacelog.models.maintenance_log import MaintenanceLog
from furnacelog.models.schedule import OccurrenceStatus, Priority, ScheduledOccurrence
from furnacelog.scheduling.expander import ExpanderConfig, RecurrenceExpander
from furnacelog.scheduling.rules import EndsAfterCount, EndsOnDate, Frequency, RecurrenceRule
from furnacelog.schemas.maintenance import MaintenanceLogCreate
from furnacelog.schemas.schedule import OccurrencePatch, SeriesPatch
from furnacelog.services.maintenance_log_service import MaintenanceLogService
from furnacelog.services.schedule_service import ScheduleService
from furnacelog.services.weather_service import WeatherService
from furnacelog.schemas.weather import WeatherObservationCreate

TODAY = date(2025, 1, 1)


@pytest.fixture
def service(session, publisher):
    return ScheduleService(session, expander=RecurrenceExpander(ExpanderConfig(hard_cap=30)), publisher=publisher)


@pytest.fixture
def monthly_series(service, home):
    rule = RecurrenceRule(frequency=Frequency.MONTHLY, end=EndsAfterCount(count=5))
    return service.create_series(
        home_id=home.id,
        title="Replace furnace filter",
        anchor_date=date(2025, 1, 15),
        rule=rule,
        system_id="oil-furnace",
        materialize_count=5,
    )


def test_create_series_materializes_occurrences(monthly_series, publisher):
    series, occurrences, expansion = monthly_series

    assert series.id is not None
    assert series.rule == RecurrenceRule(frequency=Frequency.MONTHLY, end=EndsAfterCount(count=5))
    assert [o.sequence_index for o in occurrences] == [0, 1, 2, 3, 4]
    assert occurrences[4].due_date == date(2025, 5, 15)
    assert all(o.original_due_date == o.due_date for o in occurrences)
    assert expansion.truncated is False
    assert publisher.events[0][1] == "series.created"


def test_open_ended_series_is_truncated_at_materialize_count(service, home):
    _, occurrences, expansion = service.create_series(
        home_id=home.id,
        title="Check heat trace",
        anchor_date=date(2025, 1, 1),
        rule=RecurrenceRule(frequency=Frequency.WEEKLY),
        materialize_count=4,
    )

    assert len(occurrences) == 4
    assert expansion.truncated is True
    assert expansion.warnings


def test_series_ending_before_anchor_is_rejected(service, home, session):
    rule = RecurrenceRule(frequency=Frequency.MONTHLY, end=EndsOnDate(until=date(2024, 12, 1)))

    with pytest.raises(RecurrenceValidationError):
        service.create_series(home_id=home.id, title="Never", anchor_date=date(2025, 1, 1), rule=rule)
    assert service.list_occurrences(home.id) == []


def test_rescheduling_one_occurrence_leaves_siblings_in_storage(service, monthly_series):
    series, occurrences, _ = monthly_series
    target = service.get_series_occurrence(series.home_id, series.id, 2)

    service.apply_patch(target, OccurrencePatch(due_date=date(2025, 3, 20)), TODAY)

    stored = service.list_occurrences(series.home_id, series_id=series.id)
    assert [o.due_date for o in stored] == [
        date(2025, 1, 15), date(2025, 2, 15), date(2025, 3, 20), date(2025, 4, 15), date(2025, 5, 15),
    ]
    assert stored[2].original_due_date == date(2025, 3, 15)


def test_past_reschedule_leaves_occurrence_unchanged(service, monthly_series):
    series, occurrences, _ = monthly_series

    with pytest.raises(PastDueDateError):
        service.apply_patch(occurrences[0], OccurrencePatch(due_date=date(2024, 12, 1), priority=Priority.HIGH), TODAY)

    stored = service.get_occurrence(series.home_id, occurrences[0].id)
    assert stored.due_date == date(2025, 1, 15)
    assert stored.priority == "medium"


def test_unmaterialized_index_is_reported(service, monthly_series):
    series, _, _ = monthly_series

    with pytest.raises(OccurrenceNotMaterializedError) as exc_info:
        service.get_series_occurrence(series.home_id, series.id, 7)
    assert exc_info.value.details["materialized"] == 5


def test_materialize_continues_after_existing_occurrences(service, home):
    series, _, _ = service.create_series(
        home_id=home.id,
        title="Inspect chimney",
        anchor_date=date(2025, 1, 31),
        rule=RecurrenceRule(frequency=Frequency.MONTHLY),
        materialize_count=2,
    )

    occurrences, expansion = service.materialize(home.id, series.id, 2)

    assert [o.sequence_index for o in occurrences] == [2, 3]
    assert [o.due_date for o in occurrences] == [date(2025, 3, 31), date(2025, 4, 30)]
    assert expansion.start_index == 2


def test_materialize_stops_at_count(service, monthly_series):
    series, _, _ = monthly_series

    occurrences, expansion = service.materialize(series.home_id, series.id, 3)

    assert occurrences == []
    assert expansion.truncated is False


def test_complete_with_log_links_both_records(service, monthly_series, session, publisher):
    series, occurrences, _ = monthly_series
    log_data = MaintenanceLogCreate(
        system_id="oil-furnace", system_name="Oil furnace", performed_on=date(2025, 1, 14), parts_cost=35.0
    )

    occurrence, log = service.complete(occurrences[0], TODAY, completed_on=date(2025, 1, 14), log_data=log_data)

    assert occurrence.status == OccurrenceStatus.COMPLETED.value
    assert occurrence.completed_log_id == log.id
    assert log.occurrence_id == occurrence.id
    assert session.get(MaintenanceLog, log.id).total_cost == 35.0
    assert publisher.events[-1][1] == "occurrence.completed"
    assert len(service.list_occurrences(series.home_id, series_id=series.id)) == 5


def test_completion_day_is_stored_without_a_log(service, monthly_series, session):
    """The completion day survives a reload even when no log entry is written."""
    _, occurrences, _ = monthly_series

    occurrence, log = service.complete(occurrences[0], TODAY, completed_on=date(2025, 1, 14))
    session.expire_all()

    assert log is None
    stored = session.get(ScheduledOccurrence, occurrence.id)
    assert stored.completed_on == date(2025, 1, 14)
    assert stored.completed_log_id is None


def test_failed_log_write_leaves_occurrence_pending(service, monthly_series, session, publisher):
    """A log row the database refuses rolls back the status change with it."""
    _, occurrences, _ = monthly_series
    occurrence_id = occurrences[0].id
    events_before = len(publisher.events)
    # skips field validation so the negative cost reaches the check constraint
    log_data = MaintenanceLogCreate.model_construct(
        system_id="oil-furnace", performed_on=date(2025, 1, 14), parts_cost=-5.0
    )

    with pytest.raises(IntegrityError):
        service.complete(occurrences[0], TODAY, completed_on=date(2025, 1, 14), log_data=log_data)

    stored = session.get(ScheduledOccurrence, occurrence_id)
    assert stored.status == OccurrenceStatus.PENDING.value
    assert stored.completed_at is None
    assert stored.completed_on is None
    assert session.exec(select(MaintenanceLog)).all() == []
    assert len(publisher.events) == events_before


def test_completed_occurrence_cannot_be_cancelled(service, monthly_series):
    _, occurrences, _ = monthly_series
    service.complete(occurrences[1], TODAY)

    with pytest.raises(InvalidStateTransitionError):
        service.cancel(occurrences[1], TODAY)


def test_list_filters_by_status_and_range(service, monthly_series):
    series, occurrences, _ = monthly_series
    service.cancel(occurrences[0], TODAY)

    pending = service.list_occurrences(series.home_id, status=OccurrenceStatus.PENDING)
    window = service.list_occurrences(series.home_id, due_from=date(2025, 2, 1), due_to=date(2025, 3, 31))

    assert len(pending) == 4
    assert [o.sequence_index for o in window] == [1, 2]


def test_occurrence_of_another_home_is_not_found(service, monthly_series):
    _, occurrences, _ = monthly_series

    with pytest.raises(NotFoundError):
        service.get_occurrence(999, occurrences[0].id)


def test_one_off_occurrence(service, home):
    occurrence = service.create_occurrence(home.id, "Pump septic tank", date(2025, 8, 1), priority=Priority.HIGH)

    assert occurrence.series_id is None
    assert occurrence.sequence_index is None
    assert occurrence.priority == "high"


def test_maintenance_log_service_lists_by_date(session, home, publisher):
    logs = MaintenanceLogService(session, publisher)
    logs.record(home.id, MaintenanceLogCreate(system_id="hrv", performed_on=date(2025, 2, 1), labor_cost=60.0))
    logs.record(home.id, MaintenanceLogCreate(system_id="hrv", performed_on=date(2025, 1, 1)))

    listed = logs.list_for_home(home.id)

    assert [entry.performed_on for entry in listed] == [date(2025, 1, 1), date(2025, 2, 1)]
    assert [event[1] for event in publisher.events] == ["maintenance.logged", "maintenance.logged"]


def test_weather_service_upserts_by_day(session):
    weather = WeatherService(session)
    day = WeatherObservationCreate(observed_on=date(2025, 1, 1), temp_high=-20.0, temp_low=-35.0, temp_mean=-28.0)

    assert weather.record_observations("Inuvik", [day]) == (1, 0)
    corrected = day.model_copy(update={"temp_low": -37.0})
    assert weather.record_observations("Inuvik", [corrected]) == (0, 1)

    stored = weather.for_range("Inuvik")
    assert len(stored) == 1
    assert stored[0].temp_low == -37.0


def test_series_template_edit_keeps_dates_and_individual_priorities(service, monthly_series):
    series, occurrences, _ = monthly_series
    service.apply_patch(occurrences[1], OccurrencePatch(priority=Priority.LOW), TODAY)
    service.complete(occurrences[0], TODAY)

    service.update_series(series.home_id, series.id, SeriesPatch(title="Replace HEPA filter", priority=Priority.HIGH))

    stored = service.list_occurrences(series.home_id, series_id=series.id)
    assert [o.title for o in stored] == ["Replace furnace filter"] + ["Replace HEPA filter"] * 4
    assert [o.priority for o in stored] == ["medium", "low", "high", "high", "high"]
    assert [o.due_date for o in stored] == [o.original_due_date for o in stored]
    assert service.get_series(series.home_id, series.id).rule.end == EndsAfterCount(count=5)
