"""Schedule service: one-off occurrences, recurring series and occurrence edits."""
from sqlmodel import Session, select
from sqlalchemy import func
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import date, datetime
import logging

from furnacelog import config
from furnacelog.errors import NotFoundError, OccurrenceNotMaterializedError, RecurrenceValidationError
from furnacelog.events.publisher import EventPublisher, event_publisher
from furnacelog.models.maintenance_log import MaintenanceLog
from furnacelog.models.schedule import OccurrenceStatus, Priority, RecurringSeries, ScheduledOccurrence
from furnacelog.scheduling.expander import Expansion, RecurrenceExpander
from furnacelog.scheduling.reconciler import ScheduleReconciler
from furnacelog.scheduling.rules import RecurrenceRule
from furnacelog.scheduling.validator import RecurrenceValidator
from furnacelog.schemas.maintenance import MaintenanceLogCreate
from furnacelog.schemas.schedule import OccurrencePatch, SeriesPatch
from furnacelog.services.maintenance_log_service import MaintenanceLogService
from furnacelog.utils.logger import schedule_logger
from furnacelog.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)


def occurrence_event(occurrence: ScheduledOccurrence) -> Dict[str, Any]:
    return {
        "occurrence_id": occurrence.id,
        "home_id": occurrence.home_id,
        "series_id": occurrence.series_id,
        "sequence_index": occurrence.sequence_index,
        "system_id": occurrence.system_id,
        "title": occurrence.title,
        "due_date": occurrence.due_date.isoformat(),
        "status": occurrence.status,
    }


class ScheduleService:
    """Service class for the home maintenance schedule."""

    def __init__(
        self,
        session: Session,
        expander: Optional[RecurrenceExpander] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        self.session = session
        self.expander = expander or RecurrenceExpander()
        self.publisher = publisher or event_publisher

    def _publish(self, publish: Callable[[Dict[str, Any]], Any], data: Dict[str, Any]):
        # The schedule change is already committed; a broker outage must not undo it
        try:
            publish(data)
        except Exception as e:
            logger.error(f"Failed to publish schedule event: {str(e)}")

    def create_occurrence(
        self,
        home_id: int,
        title: str,
        due_date: date,
        description: Optional[str] = None,
        system_id: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
    ) -> ScheduledOccurrence:
        """Schedule a one-off task."""
        occurrence = ScheduledOccurrence(
            home_id=home_id,
            title=title,
            description=description,
            system_id=system_id,
            priority=Priority(priority).value,
            due_date=due_date,
        )
        self.session.add(occurrence)
        self.session.commit()
        self.session.refresh(occurrence)

        schedule_logger.info(
            "Scheduled one-off occurrence",
            home_id=home_id, occurrence_id=occurrence.id, due_date=due_date,
        )
        return occurrence

    def create_series(
        self,
        home_id: int,
        title: str,
        anchor_date: date,
        rule: RecurrenceRule,
        description: Optional[str] = None,
        system_id: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        materialize_count: Optional[int] = None,
    ) -> Tuple[RecurringSeries, List[ScheduledOccurrence], Expansion]:
        """
        Create a recurring series and materialize its first occurrences.

        Invalid rules, including an end date before the anchor, are rejected
        before anything is written.
        """
        RecurrenceValidator.ensure_valid(rule, anchor_date, strict=True)
        count = materialize_count or config.DEFAULT_MATERIALIZE_COUNT
        expansion = self.expander.expand(rule, anchor_date, count)

        series = RecurringSeries(
            home_id=home_id,
            title=title,
            description=description,
            system_id=system_id,
            priority=Priority(priority).value,
            anchor_date=anchor_date,
            **rule.to_columns(),
        )
        self.session.add(series)
        self.session.flush()

        occurrences = self._build_occurrences(series, expansion)
        self.session.add_all(occurrences)
        self.session.commit()
        self.session.refresh(series)
        for occurrence in occurrences:
            self.session.refresh(occurrence)

        metrics_collector.increment_counter("occurrences_materialized_total", len(occurrences))
        schedule_logger.info(
            "Created recurring series",
            home_id=home_id,
            series_id=series.id,
            frequency=rule.frequency.value,
            interval=rule.interval,
            end=rule.end.kind,
            materialized=len(occurrences),
            truncated=expansion.truncated,
        )
        self._publish(self.publisher.publish_series_created, {
            "series_id": series.id,
            "home_id": home_id,
            "title": title,
            "anchor_date": anchor_date.isoformat(),
            "occurrences": len(occurrences),
        })
        return series, occurrences, expansion

    def _build_occurrences(self, series: RecurringSeries, expansion: Expansion) -> List[ScheduledOccurrence]:
        return [
            ScheduledOccurrence(
                home_id=series.home_id,
                series_id=series.id,
                sequence_index=expansion.start_index + offset,
                system_id=series.system_id,
                title=series.title,
                description=series.description,
                priority=series.priority,
                due_date=due,
                original_due_date=due,
            )
            for offset, due in enumerate(expansion.dates)
        ]

    def preview(self, rule: RecurrenceRule, anchor_date: date) -> Expansion:
        """First few dates of a prospective series; nothing is written."""
        return self.expander.preview(rule, anchor_date)

    def get_series(self, home_id: int, series_id: int) -> RecurringSeries:
        series = self.session.get(RecurringSeries, series_id)
        if series is None or series.home_id != home_id:
            raise NotFoundError("Series", series_id)
        return series

    def update_series(self, home_id: int, series_id: int, patch: SeriesPatch) -> RecurringSeries:
        """
        Edit the task template of a series.

        Pending occurrences pick up the new title and description, and the new
        priority unless they were reprioritized individually. Due dates are
        never touched.
        """
        series = self.get_series(home_id, series_id)
        changes = patch.model_dump(exclude_unset=True)
        for required in ("title", "priority"):
            if changes.get(required) is None:
                changes.pop(required, None)
        if "priority" in changes:
            changes["priority"] = Priority(changes["priority"]).value
        previous_priority = series.priority

        pending = [
            o for o in self.list_occurrences(home_id, series_id=series_id)
            if o.status == OccurrenceStatus.PENDING.value
        ]
        for key, value in changes.items():
            setattr(series, key, value)
        for occurrence in pending:
            if "title" in changes:
                occurrence.title = changes["title"]
            if "description" in changes:
                occurrence.description = changes["description"]
            if "priority" in changes and occurrence.priority == previous_priority:
                occurrence.priority = changes["priority"]
            occurrence.updated_at = datetime.utcnow()
            self.session.add(occurrence)

        self.session.add(series)
        self.session.commit()
        self.session.refresh(series)

        schedule_logger.info(
            "Edited series template",
            home_id=home_id, series_id=series_id, fields=sorted(changes), pending_updated=len(pending),
        )
        return series

    def materialized_count(self, series_id: int) -> int:
        """Number of occurrences generated so far; indexes are contiguous from 0."""
        statement = select(func.max(ScheduledOccurrence.sequence_index)).where(
            ScheduledOccurrence.series_id == series_id
        )
        highest = self.session.exec(statement).one()
        return 0 if highest is None else highest + 1

    def materialize(self, home_id: int, series_id: int, count: int) -> Tuple[List[ScheduledOccurrence], Expansion]:
        """Append the next ``count`` occurrences of a series, continuing its numbering."""
        series = self.get_series(home_id, series_id)
        start_index = self.materialized_count(series_id)
        expansion = self.expander.expand_window(series.rule, series.anchor_date, start_index, count)

        occurrences = self._build_occurrences(series, expansion)
        self.session.add_all(occurrences)
        self.session.commit()
        for occurrence in occurrences:
            self.session.refresh(occurrence)

        metrics_collector.increment_counter("occurrences_materialized_total", len(occurrences))
        schedule_logger.info(
            "Materialized occurrences",
            home_id=home_id, series_id=series_id, start_index=start_index,
            materialized=len(occurrences), truncated=expansion.truncated,
        )
        return occurrences, expansion

    def list_occurrences(
        self,
        home_id: int,
        status: Optional[OccurrenceStatus] = None,
        series_id: Optional[int] = None,
        due_from: Optional[date] = None,
        due_to: Optional[date] = None,
    ) -> List[ScheduledOccurrence]:
        """Occurrences of a home ordered by due date."""
        statement = select(ScheduledOccurrence).where(ScheduledOccurrence.home_id == home_id)

        if status:
            statement = statement.where(ScheduledOccurrence.status == OccurrenceStatus(status).value)
        if series_id is not None:
            statement = statement.where(ScheduledOccurrence.series_id == series_id)
        if due_from:
            statement = statement.where(ScheduledOccurrence.due_date >= due_from)
        if due_to:
            statement = statement.where(ScheduledOccurrence.due_date <= due_to)

        statement = statement.order_by(ScheduledOccurrence.due_date, ScheduledOccurrence.id)
        return list(self.session.exec(statement).all())

    def get_occurrence(self, home_id: int, occurrence_id: int) -> ScheduledOccurrence:
        occurrence = self.session.get(ScheduledOccurrence, occurrence_id)
        if occurrence is None or occurrence.home_id != home_id:
            raise NotFoundError("Occurrence", occurrence_id)
        return occurrence

    def get_series_occurrence(self, home_id: int, series_id: int, sequence_index: int) -> ScheduledOccurrence:
        """
        Occurrence ``sequence_index`` of a series.

        Raises OccurrenceNotMaterializedError when the index lies beyond the
        generated occurrences; edits never create occurrences implicitly.
        """
        self.get_series(home_id, series_id)
        if sequence_index < 0:
            raise RecurrenceValidationError(
                [f"Sequence index must not be negative, got: {sequence_index}"],
                details={"field": "sequence_index"},
            )

        statement = select(ScheduledOccurrence).where(
            ScheduledOccurrence.series_id == series_id,
            ScheduledOccurrence.sequence_index == sequence_index,
        )
        occurrence = self.session.exec(statement).first()
        if occurrence is None:
            raise OccurrenceNotMaterializedError(series_id, sequence_index, self.materialized_count(series_id))
        return occurrence

    def apply_patch(self, occurrence: ScheduledOccurrence, patch: OccurrencePatch, today: date) -> ScheduledOccurrence:
        """
        Apply a reschedule, priority change or cancellation to one occurrence.

        All requested changes are validated before any of them is committed.
        """
        reconciler = ScheduleReconciler(today)
        previous_due = occurrence.due_date
        try:
            if patch.due_date is not None and patch.due_date != occurrence.due_date:
                reconciler.reschedule(occurrence, patch.due_date)
            if patch.priority is not None:
                reconciler.reprioritize(occurrence, patch.priority)
            if patch.status == OccurrenceStatus.CANCELLED.value:
                reconciler.cancel(occurrence)
        except Exception:
            self.session.rollback()
            raise

        self.session.add(occurrence)
        self.session.commit()
        self.session.refresh(occurrence)

        schedule_logger.info(
            "Edited occurrence",
            home_id=occurrence.home_id,
            occurrence_id=occurrence.id,
            series_id=occurrence.series_id,
            sequence_index=occurrence.sequence_index,
            previous_due_date=previous_due,
            due_date=occurrence.due_date,
            priority=occurrence.priority,
            status=occurrence.status,
        )
        if occurrence.due_date != previous_due:
            self._publish(self.publisher.publish_occurrence_rescheduled, occurrence_event(occurrence))
        if occurrence.status == OccurrenceStatus.CANCELLED.value:
            self._publish(self.publisher.publish_occurrence_cancelled, occurrence_event(occurrence))
        return occurrence

    def cancel(self, occurrence: ScheduledOccurrence, today: date) -> ScheduledOccurrence:
        return self.apply_patch(occurrence, OccurrencePatch(status="cancelled"), today)

    def complete(
        self,
        occurrence: ScheduledOccurrence,
        today: date,
        completed_on: Optional[date] = None,
        log_data: Optional[MaintenanceLogCreate] = None,
    ) -> Tuple[ScheduledOccurrence, Optional[MaintenanceLog]]:
        """
        Complete an occurrence, optionally recording the work in the maintenance log.

        The occurrence and its log entry are committed together, or neither is.
        """
        log = None
        try:
            record = ScheduleReconciler(today).complete(occurrence, completed_on)
            if log_data is not None:
                log = MaintenanceLogService(self.session, self.publisher).build(
                    occurrence.home_id, log_data, occurrence_id=occurrence.id
                )
                self.session.add(log)
                self.session.flush()
                occurrence.completed_log_id = log.id

            self.session.add(occurrence)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.session.refresh(occurrence)
        if log is not None:
            self.session.refresh(log)
            metrics_collector.increment_counter("maintenance_logs_created_total")

        schedule_logger.info(
            "Completed occurrence",
            home_id=record.home_id,
            occurrence_id=record.occurrence_id,
            series_id=record.series_id,
            sequence_index=record.sequence_index,
            completed_on=record.completed_on,
            log_id=log.id if log else None,
        )
        payload = occurrence_event(occurrence)
        payload.update({"completed_on": record.completed_on.isoformat(), "log_id": log.id if log else None})
        self._publish(self.publisher.publish_occurrence_completed, payload)
        return occurrence, log
