"""
Weather/maintenance correlation.

Pairs each maintenance entry with the nearest cold snap in the days before
it, flags work done on bitterly cold days, and rolls entries up by season.
Days with no observation simply never match; they do not end the lookback
window.
"""

import bisect
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from furnacelog import config
from furnacelog.models.maintenance_log import MaintenanceLog
from furnacelog.models.weather import WeatherObservation
from furnacelog.schemas.analysis import (
    ColdSnapPeriod,
    Correlation,
    CorrelationReport,
    DatedExtremeEvent,
    DayExtreme,
    MaintenanceRef,
    SeasonalAggregate,
    TemperatureTriggered,
    WeatherAnalysis,
)
from furnacelog.schemas.weather import ExtremeEvent

logger = logging.getLogger(__name__)

COLD_SNAP_EVENT = "cold-snap"
SEVERITY_RANK = {"moderate": 1, "severe": 2, "extreme": 3}

METEOROLOGICAL_SEASONS = {
    1: "winter", 2: "winter", 3: "spring", 4: "spring", 5: "spring", 6: "summer",
    7: "summer", 8: "summer", 9: "fall", 10: "fall", 11: "fall", 12: "winter",
}

# Subarctic calendar: freeze-up and break-up rather than spring and fall
NORTHERN_SEASONS = {
    1: "winter", 2: "winter", 3: "winter", 4: "break-up", 5: "break-up", 6: "summer",
    7: "summer", 8: "summer", 9: "summer", 10: "pre-freeze-up", 11: "pre-freeze-up", 12: "winter",
}

SEASON_PRESETS = {
    "meteorological": METEOROLOGICAL_SEASONS,
    "northern": NORTHERN_SEASONS,
}

MIN_COLD_SNAP_PERIOD_DAYS = 3


@dataclass
class CorrelatorConfig:
    """Which weather counts as a cold snap and how seasons are drawn."""

    cold_severity_threshold: str = "severe"
    lookback_days: int = 14
    cold_temperature_threshold: float = -30.0
    season_map: Dict[int, str] = field(default_factory=lambda: dict(METEOROLOGICAL_SEASONS))

    def __post_init__(self):
        if self.cold_severity_threshold not in SEVERITY_RANK:
            allowed = ", ".join(SEVERITY_RANK)
            raise ValueError(f"cold_severity_threshold must be one of: {allowed}, got: {self.cold_severity_threshold}")
        if self.lookback_days < 0:
            raise ValueError(f"lookback_days must not be negative, got: {self.lookback_days}")
        missing = sorted(set(range(1, 13)) - set(self.season_map))
        if missing:
            raise ValueError(f"season_map is missing months: {missing}")

    @classmethod
    def from_settings(cls) -> "CorrelatorConfig":
        preset = SEASON_PRESETS.get(config.SEASON_PRESET)
        if preset is None:
            raise ValueError(f"Unknown SEASON_PRESET: {config.SEASON_PRESET}")
        return cls(
            cold_severity_threshold=config.COLD_SEVERITY_THRESHOLD,
            lookback_days=config.COLD_LOOKBACK_DAYS,
            cold_temperature_threshold=config.COLD_TEMPERATURE_THRESHOLD,
            season_map=dict(preset),
        )

    @property
    def seasons(self) -> List[str]:
        """Season names in calendar order of first appearance."""
        ordered: List[str] = []
        for month in range(1, 13):
            name = self.season_map[month]
            if name not in ordered:
                ordered.append(name)
        return ordered


def qualifying_cold_event(observation: WeatherObservation, threshold: str) -> Optional[ExtremeEvent]:
    """The most severe cold-snap event at or above ``threshold``, if any."""
    best = None
    for raw in observation.extreme_events or []:
        event = raw if isinstance(raw, ExtremeEvent) else ExtremeEvent(**raw)
        if event.type != COLD_SNAP_EVENT:
            continue
        if SEVERITY_RANK[event.severity] < SEVERITY_RANK[threshold]:
            continue
        if best is None or SEVERITY_RANK[event.severity] > SEVERITY_RANK[best.severity]:
            best = event
    return best


def _maintenance_ref(entry: MaintenanceLog) -> MaintenanceRef:
    return MaintenanceRef(
        log_id=entry.id,
        system_id=entry.system_id,
        system=entry.system_label,
        system_type=entry.system_type,
        performed_on=entry.performed_on,
        cost=round(entry.total_cost, 2),
    )


def _by_date(observations: Iterable[WeatherObservation]) -> Dict[date, WeatherObservation]:
    # one observation per day; the first one wins if a feed repeats a date
    indexed: Dict[date, WeatherObservation] = {}
    for observation in sorted(observations, key=lambda o: o.observed_on):
        indexed.setdefault(observation.observed_on, observation)
    return indexed


class WeatherCorrelator:
    """Correlate maintenance history with weather extremes."""

    def __init__(self, correlator_config: Optional[CorrelatorConfig] = None):
        self.config = correlator_config or CorrelatorConfig.from_settings()

    def season_of(self, day: date) -> str:
        return self.config.season_map[day.month]

    def correlate(
        self,
        entries: Sequence[MaintenanceLog],
        observations: Sequence[WeatherObservation],
        lookback_days: Optional[int] = None,
    ) -> CorrelationReport:
        """
        Correlate maintenance entries with the cold snaps that preceded them.

        Args:
            entries: Maintenance log entries to analyze
            observations: Daily weather for the home's community
            lookback_days: How far back a cold snap may be; defaults to config

        Returns:
            CorrelationReport with one correlation per entry that had a
            qualifying cold snap strictly before it within the window
        """
        lookback = self.config.lookback_days if lookback_days is None else lookback_days
        if lookback < 0:
            raise ValueError(f"lookback_days must not be negative, got: {lookback}")

        weather = _by_date(observations)
        snaps: List[Tuple[date, ExtremeEvent]] = []
        for day, observation in weather.items():
            event = qualifying_cold_event(observation, self.config.cold_severity_threshold)
            if event is not None:
                snaps.append((day, event))
        snap_dates = [day for day, _ in snaps]

        cold_snap_maintenance: List[Correlation] = []
        temperature_triggered: List[TemperatureTriggered] = []
        seasonal = {season: SeasonalAggregate() for season in self.config.seasons}

        ordered = sorted(entries, key=lambda e: (e.performed_on, e.id or 0))
        for entry in ordered:
            performed = entry.performed_on

            # nearest snap strictly before the maintenance date
            position = bisect.bisect_left(snap_dates, performed) - 1
            if position >= 0:
                snap_day, snap_event = snaps[position]
                gap = (performed - snap_day).days
                if gap <= lookback:
                    cold_snap_maintenance.append(Correlation(
                        maintenance=_maintenance_ref(entry),
                        cold_snap_date=snap_day,
                        cold_snap_event=snap_event,
                        days_after=gap,
                    ))

            same_day = weather.get(performed)
            if same_day is not None and same_day.temp_low <= self.config.cold_temperature_threshold:
                temperature_triggered.append(TemperatureTriggered(
                    maintenance=_maintenance_ref(entry),
                    temperature_low=same_day.temp_low,
                ))

            bucket = seasonal[self.season_of(performed)]
            bucket.count += 1
            bucket.total_cost = round(bucket.total_cost + entry.total_cost, 2)
            system_type = entry.system_type or "other"
            bucket.systems[system_type] = bucket.systems.get(system_type, 0) + 1

        for bucket in seasonal.values():
            bucket.systems = dict(sorted(bucket.systems.items()))

        logger.debug(
            "Correlated %d entries against %d observations (%d cold snaps): %d matches",
            len(ordered), len(weather), len(snaps), len(cold_snap_maintenance),
        )
        return CorrelationReport(
            lookback_days=lookback,
            severity_threshold=self.config.cold_severity_threshold,
            cold_snap_maintenance=cold_snap_maintenance,
            temperature_triggered=temperature_triggered,
            seasonal_patterns=seasonal,
            analyzed_entries=len(ordered),
            analyzed_observations=len(weather),
        )

    def analyze_weather(self, observations: Sequence[WeatherObservation]) -> WeatherAnalysis:
        """
        Summarize a weather history.

        Cold-snap periods are runs of at least three consecutive calendar days
        whose low is at or below the cold temperature threshold; a missing day
        ends a run.
        """
        weather = _by_date(observations)
        if not weather:
            return WeatherAnalysis(total_days=0)

        threshold = self.config.cold_temperature_threshold
        coldest: Optional[WeatherObservation] = None
        warmest: Optional[WeatherObservation] = None
        extreme_events: List[DatedExtremeEvent] = []
        cold_snaps: List[ColdSnapPeriod] = []
        precipitation_days = 0
        run: List[WeatherObservation] = []

        def close_run():
            if len(run) >= MIN_COLD_SNAP_PERIOD_DAYS:
                cold_snaps.append(ColdSnapPeriod(
                    start=run[0].observed_on,
                    end=run[-1].observed_on,
                    days=len(run),
                    min_temp=min(o.temp_low for o in run),
                ))
            run.clear()

        for day, observation in weather.items():
            if coldest is None or observation.temp_low < coldest.temp_low:
                coldest = observation
            if warmest is None or observation.temp_high > warmest.temp_high:
                warmest = observation
            if observation.precipitation_mm > 0:
                precipitation_days += 1
            for raw in observation.extreme_events or []:
                event = raw if isinstance(raw, ExtremeEvent) else ExtremeEvent(**raw)
                extreme_events.append(DatedExtremeEvent(observed_on=day, **event.model_dump()))

            if observation.temp_low <= threshold:
                if run and (day - run[-1].observed_on) != timedelta(days=1):
                    close_run()
                run.append(observation)
            else:
                close_run()
        close_run()

        mean = sum(o.temp_mean for o in weather.values()) / len(weather)
        return WeatherAnalysis(
            total_days=len(weather),
            coldest_day=DayExtreme(observed_on=coldest.observed_on, temperature=coldest.temp_low),
            warmest_day=DayExtreme(observed_on=warmest.observed_on, temperature=warmest.temp_high),
            average_temperature=round(mean, 1),
            precipitation_days=precipitation_days,
            extreme_events=extreme_events,
            cold_snaps=cold_snaps,
        )
