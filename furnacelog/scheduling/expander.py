"""
Recurrence expansion.

Turns a recurrence rule and an anchor date into concrete due dates. Each
occurrence is computed directly from the anchor (occurrence ``k`` is the
anchor plus ``k * interval`` units), so month arithmetic never drifts and the
same inputs always yield the same dates.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field

from furnacelog import config
from furnacelog.errors import RecurrenceValidationError
from furnacelog.scheduling.rules import EndsAfterCount, EndsOnDate, Frequency, RecurrenceRule
from furnacelog.scheduling.validator import RecurrenceValidator
from furnacelog.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)

MONTHS_PER_UNIT = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.ANNUALLY: 12,
}


def is_month_end(day: date) -> bool:
    return day.day == calendar.monthrange(day.year, day.month)[1]


def occurrence_date(rule: RecurrenceRule, anchor: date, index: int) -> date:
    """
    Due date of occurrence ``index`` (0 is the anchor itself).

    Month-based steps use calendar months. A day that does not exist in the
    target month is clamped to its last day, and an anchor on the last day of
    its month stays on the last day of every later month.
    """
    units = index * rule.interval
    if rule.frequency == Frequency.DAILY:
        return anchor + timedelta(days=units)
    if rule.frequency == Frequency.WEEKLY:
        return anchor + timedelta(weeks=units)

    months = units * MONTHS_PER_UNIT[rule.frequency]
    if is_month_end(anchor):
        return anchor + relativedelta(months=months, day=31)
    return anchor + relativedelta(months=months)


def iter_occurrences(rule: RecurrenceRule, anchor: date, start_index: int = 0) -> Iterator[Tuple[int, date]]:
    """
    Lazily yield ``(sequence_index, due_date)`` pairs honouring the end condition.

    The generator keeps no state beyond its own position; calling it again
    with the same arguments restarts from the same dates. Open-ended rules
    produce an unbounded stream, so callers must cap consumption.
    """
    RecurrenceValidator.ensure_valid(rule, anchor)
    index = start_index
    while True:
        if isinstance(rule.end, EndsAfterCount) and index >= rule.end.count:
            return
        try:
            candidate = occurrence_date(rule, anchor, index)
        except (OverflowError, ValueError):
            # past date.max
            return
        if isinstance(rule.end, EndsOnDate) and candidate > rule.end.until:
            return
        yield index, candidate
        index += 1


class Expansion(BaseModel):
    """Materialized slice of a series."""

    start_index: int = 0
    dates: List[date] = Field(default_factory=list)
    truncated: bool = False
    warnings: List[str] = Field(default_factory=list)


@dataclass
class ExpanderConfig:
    """Limits applied to every expansion."""

    hard_cap: int = 500
    preview_count: int = 5

    @classmethod
    def from_settings(cls) -> "ExpanderConfig":
        return cls(
            hard_cap=config.MAX_OCCURRENCES_HARD_CAP,
            preview_count=config.PREVIEW_COUNT,
        )


class RecurrenceExpander:
    """Expand recurrence rules into bounded lists of due dates."""

    def __init__(self, expander_config: Optional[ExpanderConfig] = None):
        self.config = expander_config or ExpanderConfig.from_settings()

    def expand(self, rule: RecurrenceRule, anchor: date, max_occurrences: Optional[int] = None) -> Expansion:
        """
        Expand a series from its first occurrence.

        Args:
            rule: Recurrence rule of the series
            anchor: Due date of occurrence 0
            max_occurrences: Caller's limit; never exceeds the configured hard cap

        Returns:
            Expansion whose ``truncated`` flag is set when the limit stopped
            expansion before the rule's own end
        """
        return self.expand_window(rule, anchor, 0, max_occurrences)

    def preview(self, rule: RecurrenceRule, anchor: date) -> Expansion:
        """First few dates of a prospective series, for display before saving."""
        return self.expand_window(rule, anchor, 0, self.config.preview_count)

    @metrics_collector.time_operation("expansion_seconds")
    def expand_window(
        self,
        rule: RecurrenceRule,
        anchor: date,
        start_index: int,
        count: Optional[int] = None,
    ) -> Expansion:
        """
        Expand ``count`` occurrences starting at ``start_index``.

        Used both for series creation (``start_index=0``) and to materialize
        the next batch of an existing series.
        """
        warnings = RecurrenceValidator.ensure_valid(rule, anchor)
        if start_index < 0:
            raise RecurrenceValidationError([f"Start index must not be negative, got: {start_index}"])
        if count is not None and count < 1:
            raise RecurrenceValidationError([f"Occurrence limit must be at least 1, got: {count}"])

        limit = self.config.hard_cap if count is None else min(count, self.config.hard_cap)
        if count is not None and count > self.config.hard_cap:
            warnings.append(
                f"Requested {count} occurrences; materialization is capped at {self.config.hard_cap}"
            )

        dates: List[date] = []
        stream = iter_occurrences(rule, anchor, start_index)
        for _, due in stream:
            dates.append(due)
            if len(dates) >= limit:
                break

        truncated = len(dates) >= limit and next(stream, None) is not None

        metrics_collector.increment_counter("expansions_total")
        if truncated:
            metrics_collector.increment_counter("expansions_truncated_total")
            logger.debug(
                "Expansion of %s rule truncated at %d occurrences (start_index=%d)",
                rule.frequency.value, limit, start_index,
            )
        if not dates:
            logger.warning("Expansion from %s produced no occurrences", anchor.isoformat())

        return Expansion(start_index=start_index, dates=dates, truncated=truncated, warnings=warnings)
