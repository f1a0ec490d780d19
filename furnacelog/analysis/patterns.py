"""
Recurring-interval detection over a home's maintenance history.

For every system with enough log entries, the gaps between consecutive
entries are summarized into a mean interval and a 0-100 consistency score.
Sparse history is an expected state for new homes: it yields ``low``
confidence and an ``insufficient_data`` listing, never an error.
"""

import logging
import statistics
from collections import OrderedDict
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from furnacelog import config
from furnacelog.models.maintenance_log import MaintenanceLog
from furnacelog.schemas.analysis import (
    InsufficientHistory,
    Pattern,
    PatternInsights,
    RecurringPatterns,
)

logger = logging.getLogger(__name__)

CONFIDENCE_RANK = {"low": 0, "medium": 1, "high": 2}


@dataclass
class PatternDetectorConfig:
    """Thresholds for pattern detection and confidence tiers."""

    min_occurrences: int = 3
    high_min_occurrences: int = 5
    high_consistency: float = 70.0
    medium_consistency: float = 50.0

    def __post_init__(self):
        # at least one gap is needed to compute an interval
        if self.min_occurrences < 2:
            raise ValueError(f"min_occurrences must be at least 2, got: {self.min_occurrences}")

    @classmethod
    def from_settings(cls) -> "PatternDetectorConfig":
        return cls(
            min_occurrences=config.PATTERN_MIN_OCCURRENCES,
            high_min_occurrences=config.PATTERN_HIGH_MIN_OCCURRENCES,
            high_consistency=config.PATTERN_HIGH_CONSISTENCY,
            medium_consistency=config.PATTERN_MEDIUM_CONSISTENCY,
        )


def group_by_system(entries: Iterable[MaintenanceLog]) -> Dict[str, List[MaintenanceLog]]:
    """Group log entries by system id, ordered by system id."""
    grouped: Dict[str, List[MaintenanceLog]] = {}
    for entry in entries:
        grouped.setdefault(entry.system_id, []).append(entry)
    return OrderedDict(sorted(grouped.items()))


def consistency_score(gaps: Sequence[int]) -> float:
    """``100 * (1 - stddev / mean)`` clamped to [0, 100]; 0 when the mean gap is 0."""
    mean_gap = statistics.mean(gaps)
    if mean_gap == 0:
        return 0.0
    score = 100.0 * (1.0 - statistics.pstdev(gaps) / mean_gap)
    return max(0.0, min(100.0, score))


class PatternDetector:
    """Detect per-system maintenance intervals."""

    def __init__(self, detector_config: Optional[PatternDetectorConfig] = None):
        self.config = detector_config or PatternDetectorConfig.from_settings()

    def confidence_for(self, occurrences: int, consistency: float) -> str:
        if occurrences >= self.config.high_min_occurrences and consistency >= self.config.high_consistency:
            return "high"
        if occurrences >= self.config.min_occurrences and consistency >= self.config.medium_consistency:
            return "medium"
        return "low"

    def analyze(self, entries: Iterable[MaintenanceLog]) -> PatternInsights:
        """Group raw log entries by system and detect patterns."""
        return self.detect(group_by_system(entries))

    def detect(self, grouped: Mapping[str, Sequence[MaintenanceLog]]) -> PatternInsights:
        """
        Detect patterns for log entries already grouped by system id.

        Args:
            grouped: system id -> that system's log entries, in any order

        Returns:
            PatternInsights whose overall confidence is the best pattern
            confidence, or ``low`` when nothing was detected
        """
        recurring: List[Pattern] = []
        insufficient: List[InsufficientHistory] = []
        analyzed = 0

        for system_id in sorted(grouped):
            logs = sorted(grouped[system_id], key=lambda log: (log.performed_on, log.id or 0))
            analyzed += len(logs)
            if not logs:
                continue
            label = logs[0].system_label

            if len(logs) < self.config.min_occurrences:
                insufficient.append(InsufficientHistory(
                    system=label,
                    system_id=system_id,
                    occurrences=len(logs),
                    required=self.config.min_occurrences,
                ))
                continue

            recurring.append(self._pattern_for(system_id, label, logs))

        confidence = "low"
        for pattern in recurring:
            if CONFIDENCE_RANK[pattern.confidence] > CONFIDENCE_RANK[confidence]:
                confidence = pattern.confidence

        logger.debug(
            "Pattern detection over %d entries: %d recurring, %d insufficient",
            analyzed, len(recurring), len(insufficient),
        )
        return PatternInsights(
            patterns=RecurringPatterns(recurring=recurring),
            insufficient_data=insufficient,
            analyzed_entries=analyzed,
            confidence=confidence,
        )

    def _pattern_for(self, system_id: str, label: str, logs: Sequence[MaintenanceLog]) -> Pattern:
        dates = [log.performed_on for log in logs]
        gaps = [(later - earlier).days for earlier, later in zip(dates, dates[1:])]

        interval_days = round(statistics.mean(gaps), 1)
        consistency = round(consistency_score(gaps), 1)
        confidence = self.confidence_for(len(logs), consistency)

        return Pattern(
            system=label,
            system_id=system_id,
            interval_days=interval_days,
            occurrences=len(logs),
            consistency=consistency,
            confidence=confidence,
            description=(
                f"{label} maintained every {interval_days:g} days "
                f"({consistency:g}% consistency over {len(logs)} entries)"
            ),
            first_date=dates[0],
            last_date=dates[-1],
            next_expected=dates[-1] + timedelta(days=round(interval_days)),
        )
