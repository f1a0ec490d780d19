"""
Structured logging for write paths.

Schedule edits and maintenance-log creation are audited as one JSON object
per line so they can be shipped to a log index without parsing free text.
"""

import json
import logging
import sys
from datetime import datetime, date
from typing import Any, Dict


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class StructuredLogger:
    """JSON-line logger wrapping a stdlib logger."""

    def __init__(self, name: str, level: int = logging.INFO):
        """
        Initialize structured logger.

        Args:
            name: Logger name, reported as the ``service`` field
            level: Logging level
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # Handlers are shared per logger name
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)

    def _payload(self, level: int, message: str, fields: Dict[str, Any]) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": logging.getLevelName(level),
            "message": message,
            "service": self.logger.name,
        }
        log_data.update(fields)
        return json.dumps(log_data, default=_json_default)

    def _log(self, level: int, message: str, **fields):
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self._payload(level, message, fields))

    def debug(self, message: str, **fields):
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self._log(logging.ERROR, message, **fields)

    def exception(self, message: str, **fields):
        """Log an error with the active traceback attached."""
        if self.logger.isEnabledFor(logging.ERROR):
            fields["exception"] = True
            self.logger.exception(self._payload(logging.ERROR, message, fields))


schedule_logger = StructuredLogger("furnacelog.schedule")
maintenance_logger = StructuredLogger("furnacelog.maintenance")
