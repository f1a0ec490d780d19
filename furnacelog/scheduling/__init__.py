"""Forward-looking schedule: recurrence rules and their expansion."""

from .rules import EndsAfterCount, EndsOnDate, Frequency, NeverEnds, RecurrenceRule
from .validator import RecurrenceValidator
from .expander import Expansion, ExpanderConfig, RecurrenceExpander, iter_occurrences

__all__ = [
    "EndsAfterCount",
    "EndsOnDate",
    "ExpanderConfig",
    "Expansion",
    "Frequency",
    "NeverEnds",
    "RecurrenceExpander",
    "RecurrenceRule",
    "RecurrenceValidator",
    "iter_occurrences",
]
