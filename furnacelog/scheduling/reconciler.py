"""
Single-occurrence edits against a schedule.

The reconciler only ever touches the occurrence it is handed. Siblings in
the same series keep the dates computed from the series rule and anchor,
so moving occurrence #3 never shifts occurrence #4.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from furnacelog.errors import InvalidStateTransitionError, PastDueDateError
from furnacelog.models.schedule import OccurrenceStatus, Priority, ScheduledOccurrence
from furnacelog.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionRecord:
    """Facts about a completed occurrence, handed to whoever writes the maintenance log."""

    occurrence_id: Optional[int]
    home_id: int
    series_id: Optional[int]
    sequence_index: Optional[int]
    system_id: Optional[str]
    title: str
    due_date: date
    completed_on: date


class ScheduleReconciler:
    """Apply reschedule, complete, cancel and priority edits to one occurrence."""

    def __init__(self, today: date, now: Optional[datetime] = None):
        """
        Args:
            today: The home's current local date; reschedules before it are rejected
            now: Timestamp written to ``updated_at``/``completed_at``
        """
        self.today = today
        self.now = now or datetime.utcnow()

    def _ensure_editable(self, occurrence: ScheduledOccurrence, action: str) -> None:
        if occurrence.is_terminal:
            metrics_collector.increment_counter("occurrence_edits_rejected_total")
            logger.info(
                "Rejected %s of occurrence %s in terminal status %s",
                action, occurrence.id, occurrence.status,
            )
            raise InvalidStateTransitionError(occurrence.id, occurrence.status, action)

    def _touch(self, occurrence: ScheduledOccurrence) -> None:
        occurrence.updated_at = self.now
        metrics_collector.increment_counter("occurrence_edits_total")

    def reschedule(self, occurrence: ScheduledOccurrence, new_due_date: date) -> ScheduledOccurrence:
        self._ensure_editable(occurrence, "reschedule")
        if new_due_date < self.today:
            metrics_collector.increment_counter("occurrence_edits_rejected_total")
            raise PastDueDateError(new_due_date, self.today)

        if occurrence.original_due_date is None:
            occurrence.original_due_date = occurrence.due_date
        occurrence.due_date = new_due_date
        self._touch(occurrence)
        return occurrence

    def reprioritize(self, occurrence: ScheduledOccurrence, priority: Priority) -> ScheduledOccurrence:
        self._ensure_editable(occurrence, "reprioritize")
        occurrence.priority = Priority(priority).value
        self._touch(occurrence)
        return occurrence

    def cancel(self, occurrence: ScheduledOccurrence) -> ScheduledOccurrence:
        self._ensure_editable(occurrence, "cancel")
        occurrence.status = OccurrenceStatus.CANCELLED.value
        self._touch(occurrence)
        return occurrence

    def complete(self, occurrence: ScheduledOccurrence, completed_on: Optional[date] = None) -> CompletionRecord:
        """
        Move an occurrence to ``completed``.

        No new occurrence is generated here: later occurrences of a series
        already exist or are materialized explicitly by the caller.
        """
        self._ensure_editable(occurrence, "complete")
        occurrence.status = OccurrenceStatus.COMPLETED.value
        occurrence.completed_at = self.now
        occurrence.completed_on = completed_on or self.today
        self._touch(occurrence)
        return CompletionRecord(
            occurrence_id=occurrence.id,
            home_id=occurrence.home_id,
            series_id=occurrence.series_id,
            sequence_index=occurrence.sequence_index,
            system_id=occurrence.system_id,
            title=occurrence.title,
            due_date=occurrence.due_date,
            completed_on=occurrence.completed_on,
        )
