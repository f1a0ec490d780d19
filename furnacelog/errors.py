"""
Domain errors for scheduling and history analysis.

Every error carries a machine-readable code, a message that can be shown to
the homeowner, and a details dict naming the offending field or value so the
client can highlight a specific correction.
"""

from datetime import date
from typing import Any, Dict, List, Optional


class FurnaceLogError(Exception):
    """Base exception for FurnaceLog domain errors"""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class RecurrenceValidationError(FurnaceLogError):
    """Raised when a recurrence rule is malformed; no expansion is attempted."""

    status_code = 422

    def __init__(self, errors: List[str], details: Optional[Dict[str, Any]] = None):
        self.errors = list(errors)
        merged = {"errors": self.errors}
        merged.update(details or {})
        super().__init__(
            code="VALIDATION_ERROR",
            message="; ".join(self.errors) or "Invalid recurrence rule",
            details=merged,
        )


class PastDueDateError(FurnaceLogError):
    """Raised when an occurrence is rescheduled to a date before today."""

    def __init__(self, requested: date, today: date):
        super().__init__(
            code="PAST_DUE_DATE",
            message=f"Cannot reschedule to {requested.isoformat()}: date is before {today.isoformat()}",
            details={"field": "due_date", "requested": requested.isoformat(), "today": today.isoformat()},
        )


class InvalidStateTransitionError(FurnaceLogError):
    """Raised when an edit targets an occurrence in a terminal state."""

    status_code = 409

    def __init__(self, occurrence_id: Optional[int], current: str, action: str):
        super().__init__(
            code="INVALID_STATE_TRANSITION",
            message=f"Cannot {action} an occurrence that is already {current}",
            details={"occurrence_id": occurrence_id, "status": current, "action": action},
        )


class OccurrenceNotMaterializedError(FurnaceLogError):
    """Raised when an edit targets a series index that has not been generated yet."""

    status_code = 409

    def __init__(self, series_id: int, sequence_index: int, materialized: int):
        super().__init__(
            code="NOT_MATERIALIZED",
            message=(
                f"Occurrence #{sequence_index} of series {series_id} has not been generated; "
                f"materialize more occurrences first"
            ),
            details={
                "series_id": series_id,
                "sequence_index": sequence_index,
                "materialized": materialized,
            },
        )


class NotFoundError(FurnaceLogError):
    """Raised when a requested resource does not exist or is not visible to the caller."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} not found",
            details={"resource": resource, "id": resource_id},
        )


class DateRangeError(FurnaceLogError):
    """Raised when an analysis range is inverted or its bucket size is unknown."""

    status_code = 422

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="INVALID_RANGE", message=message, details=details)


def create_error_response(error: FurnaceLogError) -> Dict[str, Any]:
    """
    Create a standardized error response

    Args:
        error: The FurnaceLogError to convert

    Returns:
        Standardized error response dictionary
    """
    return {
        "success": False,
        "error": {
            "code": error.code,
            "message": error.message,
            "details": error.details
        }
    }
