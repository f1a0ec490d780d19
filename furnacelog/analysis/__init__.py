"""Backward-looking history analysis: patterns, weather correlation and timelines."""

from .patterns import PatternDetector, PatternDetectorConfig, group_by_system
from .correlation import CorrelatorConfig, WeatherCorrelator, SEASON_PRESETS
from .timeline import TimelineAggregator, bucket_bounds

__all__ = [
    "CorrelatorConfig",
    "PatternDetector",
    "PatternDetectorConfig",
    "SEASON_PRESETS",
    "TimelineAggregator",
    "WeatherCorrelator",
    "bucket_bounds",
    "group_by_system",
]
