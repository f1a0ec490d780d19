"""
In-process metrics for the scheduling engine.

Counts expansions, truncations at the occurrence cap and rejected edits so
the cap can be tuned from real traffic.
"""

import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict


class MetricsCollector:
    """Thread-safe counters and cumulative timers."""

    def __init__(self):
        self.counters = defaultdict(int)
        self.timers = defaultdict(float)
        self.lock = threading.Lock()

        for name in (
            "expansions_total",
            "expansions_truncated_total",
            "occurrences_materialized_total",
            "occurrence_edits_total",
            "occurrence_edits_rejected_total",
            "maintenance_logs_created_total",
        ):
            self.counters[name] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        with self.lock:
            self.counters[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "counters": dict(self.counters),
                "timers": dict(self.timers),
                "timestamp": datetime.utcnow().isoformat()
            }

    def reset(self):
        with self.lock:
            for name in list(self.counters):
                self.counters[name] = 0
            self.timers.clear()

    def time_operation(self, metric_name: str) -> Callable:
        """Decorator recording the wall time of each call under ``metric_name``."""
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    self.record_timer(metric_name, time.perf_counter() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics_collector = MetricsCollector()
