"""Recurrence rule value types."""
from datetime import date
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from furnacelog.errors import RecurrenceValidationError


class Frequency(str, Enum):
    """Unit a recurrence interval is counted in."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


class NeverEnds(BaseModel):
    """Series runs until the owner stops it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["never"] = "never"


class EndsOnDate(BaseModel):
    """Series ends on ``until``; the date itself is included if it is an occurrence."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["on_date"] = "on_date"
    until: date


class EndsAfterCount(BaseModel):
    """Series ends after exactly ``count`` occurrences."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["after_count"] = "after_count"
    count: int


EndCondition = Annotated[
    Union[NeverEnds, EndsOnDate, EndsAfterCount],
    Field(discriminator="kind"),
]


class RecurrenceRule(BaseModel):
    """
    Frequency, interval and end condition of a recurring series.

    A rule is fixed when its series is created. Individual occurrences may be
    moved afterwards, but siblings are always computed from the rule and the
    series anchor, never from an edited occurrence.
    """

    model_config = ConfigDict(frozen=True)

    frequency: Frequency
    interval: int = 1
    end: EndCondition = Field(default_factory=NeverEnds)

    @property
    def is_open_ended(self) -> bool:
        return isinstance(self.end, NeverEnds)

    def to_columns(self) -> Dict[str, Any]:
        """Persisted shape: frequency, interval and at most one end column."""
        return {
            "frequency": self.frequency.value,
            "interval": self.interval,
            "end_date": self.end.until if isinstance(self.end, EndsOnDate) else None,
            "occurrence_count": self.end.count if isinstance(self.end, EndsAfterCount) else None,
        }

    @classmethod
    def from_columns(
        cls,
        frequency: str,
        interval: int,
        end_date: Optional[date] = None,
        occurrence_count: Optional[int] = None,
    ) -> "RecurrenceRule":
        """Rebuild a rule from its persisted columns."""
        errors = []
        try:
            parsed_frequency = Frequency(frequency)
        except ValueError:
            parsed_frequency = None
            allowed = ", ".join(f.value for f in Frequency)
            errors.append(f"Frequency must be one of: {allowed}, got: {frequency}")
        if end_date is not None and occurrence_count is not None:
            errors.append("Only one end condition may be set: end_date or occurrence_count")
        if errors:
            raise RecurrenceValidationError(errors)

        if end_date is not None:
            end = EndsOnDate(until=end_date)
        elif occurrence_count is not None:
            end = EndsAfterCount(count=occurrence_count)
        else:
            end = NeverEnds()
        return cls(frequency=parsed_frequency, interval=interval, end=end)
