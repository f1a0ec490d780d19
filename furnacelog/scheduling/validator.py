"""Recurrence Validator."""
from datetime import date
from typing import Any, Dict, List, Optional

from furnacelog.errors import RecurrenceValidationError
from furnacelog.scheduling.rules import EndsAfterCount, EndsOnDate, RecurrenceRule

INFINITE_RECURRENCE_WARNING = (
    "Infinite recurrence: this task will continue indefinitely. "
    "Consider setting an end date or occurrence limit."
)


class RecurrenceValidator:
    """Validate recurrence rules before any expansion runs."""

    @staticmethod
    def _result() -> Dict[str, Any]:
        return {
            "valid": True,
            "errors": [],
            "warnings": []
        }

    @staticmethod
    def validate_rule(rule: RecurrenceRule, anchor_date: Optional[date] = None) -> Dict[str, Any]:
        """
        Validate a recurrence rule against its anchor date.

        Args:
            rule: Rule to check
            anchor_date: First due date of the series, if known

        Returns:
            Dict with validation result
        """
        result = RecurrenceValidator._result()

        if not isinstance(rule.interval, int) or rule.interval < 1:
            result["valid"] = False
            result["errors"].append(f"Interval must be a whole number of at least 1, got: {rule.interval}")

        if isinstance(rule.end, EndsAfterCount) and rule.end.count < 1:
            result["valid"] = False
            result["errors"].append(f"Occurrence count must be at least 1, got: {rule.end.count}")

        if rule.is_open_ended:
            result["warnings"].append(INFINITE_RECURRENCE_WARNING)

        if isinstance(rule.end, EndsOnDate) and anchor_date is not None and rule.end.until < anchor_date:
            result["warnings"].append(
                f"End date {rule.end.until.isoformat()} is before the first due date "
                f"{anchor_date.isoformat()}; no occurrences will be scheduled"
            )

        return result

    @staticmethod
    def ensure_valid(rule: RecurrenceRule, anchor_date: Optional[date] = None, strict: bool = False) -> List[str]:
        """
        Raise if the rule is invalid, otherwise return its warnings.

        With ``strict`` an end date before the anchor is an error as well,
        since a new series that schedules nothing is almost always a typo.
        """
        result = RecurrenceValidator.validate_rule(rule, anchor_date)
        errors = list(result["errors"])
        warnings = list(result["warnings"])

        if strict and isinstance(rule.end, EndsOnDate) and anchor_date is not None and rule.end.until < anchor_date:
            errors.append(
                f"End date {rule.end.until.isoformat()} must not be before the first due date "
                f"{anchor_date.isoformat()}"
            )
            warnings = [w for w in warnings if not w.startswith("End date")]

        if errors:
            raise RecurrenceValidationError(errors, details={"field": "recurrence"})
        return warnings
