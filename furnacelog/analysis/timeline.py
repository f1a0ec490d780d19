"""
Timeline aggregation for the climate time machine view.

Buckets a date range by day, week or month and attaches the weather and the
maintenance that fall inside each bucket. All temporal inputs are explicit,
so identical inputs always produce identical timelines.
"""

import bisect
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from furnacelog import config
from furnacelog.errors import DateRangeError
from furnacelog.models.maintenance_log import MaintenanceLog
from furnacelog.models.weather import WeatherObservation
from furnacelog.schemas.analysis import (
    CostBucket,
    DatedExtremeEvent,
    PointSummary,
    Timeline,
    TimelineEntry,
    TimelinePoint,
    TimelineSummary,
    WeatherSummary,
)

logger = logging.getLogger(__name__)

GRANULARITIES = ("day", "week", "month")
COST_GROUPINGS = ("month", "year")


def bucket_bounds(
    start: date, end: date, granularity: str, max_points: Optional[int] = None
) -> List[Tuple[date, date]]:
    """
    Inclusive ``(first_day, last_day)`` pairs covering ``[start, end]``.

    Buckets are anchored on ``start``: month bucket ``k`` begins ``k`` calendar
    months after it. The last bucket is clipped to ``end``. Ranges needing more
    than ``max_points`` buckets are rejected.
    """
    if granularity not in GRANULARITIES:
        raise DateRangeError(
            f"Granularity must be one of: {', '.join(GRANULARITIES)}, got: {granularity}",
            details={"field": "granularity"},
        )
    if end < start:
        raise DateRangeError(
            f"End date {end.isoformat()} is before start date {start.isoformat()}",
            details={"field": "end"},
        )

    def nth_start(k: int) -> date:
        if granularity == "day":
            return start + timedelta(days=k)
        if granularity == "week":
            return start + timedelta(weeks=k)
        return start + relativedelta(months=k)

    bounds: List[Tuple[date, date]] = []
    k = 0
    first = start
    while True:
        if max_points is not None and len(bounds) >= max_points:
            raise DateRangeError(
                f"Range {start.isoformat()}..{end.isoformat()} by {granularity} exceeds "
                f"{max_points} points; narrow the range or use a coarser granularity",
                details={"field": "start", "max_points": max_points},
            )
        try:
            following = nth_start(k + 1)
        except (OverflowError, ValueError):
            # next bucket would start past date.max
            bounds.append((first, end))
            return bounds
        bounds.append((first, min(following - timedelta(days=1), end)))
        if following > end:
            return bounds
        k += 1
        first = following


def summarize_weather(observations: Sequence[WeatherObservation]) -> WeatherSummary:
    extreme_events: List[DatedExtremeEvent] = []
    for observation in observations:
        for raw in observation.extreme_events or []:
            payload = raw if isinstance(raw, dict) else raw.model_dump()
            extreme_events.append(DatedExtremeEvent(observed_on=observation.observed_on, **payload))

    return WeatherSummary(
        high=max(o.temp_high for o in observations),
        low=min(o.temp_low for o in observations),
        mean=round(sum(o.temp_mean for o in observations) / len(observations), 1),
        precipitation_mm=round(sum(o.precipitation_mm or 0.0 for o in observations), 1),
        snowfall_cm=round(sum(o.snowfall_cm or 0.0 for o in observations), 1),
        observed_days=len(observations),
        extreme_events=extreme_events,
    )


def _timeline_entry(entry: MaintenanceLog) -> TimelineEntry:
    return TimelineEntry(
        log_id=entry.id,
        system_id=entry.system_id,
        system=entry.system_label,
        performed_on=entry.performed_on,
        total_cost=round(entry.total_cost, 2),
        notes=entry.notes,
    )


class TimelineAggregator:
    """Merge weather and maintenance history into bucketed data points."""

    def __init__(self, max_points: Optional[int] = None):
        self.max_points = config.MAX_TIMELINE_POINTS if max_points is None else max_points

    def aggregate(
        self,
        observations: Sequence[WeatherObservation],
        entries: Sequence[MaintenanceLog],
        start: date,
        end: date,
        granularity: str = "day",
    ) -> Timeline:
        """
        Build the timeline for ``[start, end]``.

        Args:
            observations: Daily weather; days outside the range are ignored
            entries: Maintenance log entries; entries outside the range are ignored
            start: First day of the range
            end: Last day of the range, supplied by the caller even when open-ended
            granularity: ``day``, ``week`` or ``month``

        Returns:
            Timeline with one point per bucket, in date order
        """
        bounds = bucket_bounds(start, end, granularity, self.max_points)
        starts = [first for first, _ in bounds]

        weather_buckets: List[List[WeatherObservation]] = [[] for _ in bounds]
        seen_days = set()
        for observation in sorted(observations, key=lambda o: o.observed_on):
            day = observation.observed_on
            if day < start or day > end or day in seen_days:
                continue
            seen_days.add(day)
            weather_buckets[bisect.bisect_right(starts, day) - 1].append(observation)

        maintenance_buckets: List[List[MaintenanceLog]] = [[] for _ in bounds]
        for entry in sorted(entries, key=lambda e: (e.performed_on, e.id or 0)):
            day = entry.performed_on
            if day < start or day > end:
                continue
            maintenance_buckets[bisect.bisect_right(starts, day) - 1].append(entry)

        points: List[TimelinePoint] = []
        total_maintenance = 0
        total_cost = 0.0
        for (first, last), weather, maintenance in zip(bounds, weather_buckets, maintenance_buckets):
            weather_summary = summarize_weather(weather) if weather else None
            bucket_cost = round(sum(e.total_cost for e in maintenance), 2)
            total_maintenance += len(maintenance)
            total_cost += bucket_cost
            points.append(TimelinePoint(
                start=first,
                end=last,
                weather=weather_summary,
                maintenance=[_timeline_entry(e) for e in maintenance],
                summary=PointSummary(
                    maintenance_count=len(maintenance),
                    total_cost=bucket_cost,
                    temperature_mean=weather_summary.mean if weather_summary else None,
                ),
            ))

        logger.debug(
            "Timeline %s..%s by %s: %d points, %d maintenance entries",
            start.isoformat(), end.isoformat(), granularity, len(points), total_maintenance,
        )
        return Timeline(
            start=start,
            end=end,
            granularity=granularity,
            points=points,
            summary=TimelineSummary(
                total_maintenance=total_maintenance,
                total_cost=round(total_cost, 2),
                total_weather_days=len(seen_days),
            ),
        )

    def cost_breakdown(self, entries: Sequence[MaintenanceLog], group_by: str = "month") -> List[CostBucket]:
        """Total, count and average cost per period and system, ordered by period then system."""
        if group_by not in COST_GROUPINGS:
            raise DateRangeError(
                f"group_by must be one of: {', '.join(COST_GROUPINGS)}, got: {group_by}",
                details={"field": "group_by"},
            )

        groups: Dict[Tuple[str, str], List[MaintenanceLog]] = {}
        for entry in entries:
            day = entry.performed_on
            period = f"{day.year:04d}-{day.month:02d}" if group_by == "month" else f"{day.year:04d}"
            groups.setdefault((period, entry.system_id), []).append(entry)

        buckets: List[CostBucket] = []
        for (period, system_id), grouped in sorted(groups.items()):
            total = round(sum(e.total_cost for e in grouped), 2)
            buckets.append(CostBucket(
                period=period,
                system_id=system_id,
                system=grouped[0].system_label,
                total_cost=total,
                count=len(grouped),
                average_cost=round(total / len(grouped), 2),
            ))
        return buckets
