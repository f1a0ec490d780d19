"""Tests for weather/maintenance correlation."""
import pytest
from datetime import date, timedelta

from conftest import cold_snap, make_log, make_observation
from furnacelog.analysis.correlation import CorrelatorConfig, NORTHERN_SEASONS, WeatherCorrelator


@pytest.fixture
def correlator():
    return WeatherCorrelator(CorrelatorConfig())


def daily_weather(start, days, low=-10.0):
    return [make_observation(start + timedelta(days=k), low=low) for k in range(days)]


def test_maintenance_three_days_after_cold_snap_is_correlated(correlator):
    weather = daily_weather(date(2025, 1, 1), 20)
    weather[9] = make_observation(date(2025, 1, 10), low=-42.0, events=[cold_snap("severe")])
    entry = make_log("oil-furnace", date(2025, 1, 13), parts=120.0, labor=80.0, log_id=1)

    report = correlator.correlate([entry], weather)

    assert len(report.cold_snap_maintenance) == 1
    match = report.cold_snap_maintenance[0]
    assert match.days_after == 3
    assert match.cold_snap_date == date(2025, 1, 10)
    assert match.maintenance.cost == 200.0
    assert match.cold_snap_event.severity == "severe"


def test_cold_snap_outside_lookback_is_ignored(correlator):
    weather = [make_observation(date(2025, 1, 1), low=-40.0, events=[cold_snap()])]
    entry = make_log("oil-furnace", date(2025, 1, 20))

    report = correlator.correlate([entry], weather)

    assert report.cold_snap_maintenance == []


def test_cold_snap_on_the_same_day_does_not_count(correlator):
    weather = [make_observation(date(2025, 1, 10), low=-40.0, events=[cold_snap()])]
    entry = make_log("oil-furnace", date(2025, 1, 10))

    assert correlator.correlate([entry], weather).cold_snap_maintenance == []


def test_nearest_preceding_snap_is_chosen(correlator):
    weather = [
        make_observation(date(2025, 1, 2), low=-40.0, events=[cold_snap("extreme")]),
        make_observation(date(2025, 1, 8), low=-38.0, events=[cold_snap("severe")]),
    ]
    report = correlator.correlate([make_log("oil-furnace", date(2025, 1, 12))], weather)

    assert report.cold_snap_maintenance[0].days_after == 4


def test_moderate_events_fall_below_default_threshold(correlator):
    weather = [make_observation(date(2025, 1, 10), low=-25.0, events=[cold_snap("moderate")])]

    assert correlator.correlate([make_log("hrv", date(2025, 1, 11))], weather).cold_snap_maintenance == []

    lenient = WeatherCorrelator(CorrelatorConfig(cold_severity_threshold="moderate"))
    assert len(lenient.correlate([make_log("hrv", date(2025, 1, 11))], weather).cold_snap_maintenance) == 1


def test_missing_weather_days_do_not_break_the_window(correlator):
    weather = [make_observation(date(2025, 2, 1), low=-41.0, events=[cold_snap()])]
    report = correlator.correlate([make_log("heat-trace", date(2025, 2, 12))], weather)

    assert report.cold_snap_maintenance[0].days_after == 11
    assert report.analyzed_observations == 1


def test_lookback_override_narrows_the_window(correlator):
    weather = [make_observation(date(2025, 1, 10), low=-40.0, events=[cold_snap()])]
    report = correlator.correlate([make_log("oil-furnace", date(2025, 1, 13))], weather, lookback_days=2)

    assert report.lookback_days == 2
    assert report.cold_snap_maintenance == []


def test_zero_cost_entries_are_counted_by_season(correlator):
    entries = [
        make_log("oil-furnace", date(2025, 1, 5), parts=50.0, log_id=1),
        make_log("hrv", date(2025, 1, 20), system_type="ventilation", log_id=2),
        make_log("water-tank", date(2025, 7, 1), system_type="plumbing", labor=30.0, log_id=3),
    ]
    report = correlator.correlate(entries, [])

    assert set(report.seasonal_patterns) == {"winter", "spring", "summer", "fall"}
    assert report.seasonal_patterns["winter"].count == 2
    assert report.seasonal_patterns["winter"].total_cost == 50.0
    assert report.seasonal_patterns["winter"].systems == {"furnace": 1, "ventilation": 1}
    assert report.seasonal_patterns["summer"].count == 1
    assert report.seasonal_patterns["spring"].count == 0


def test_work_on_bitterly_cold_days_is_temperature_triggered(correlator):
    weather = [make_observation(date(2025, 1, 15), low=-36.5), make_observation(date(2025, 1, 16), low=-12.0)]
    entries = [make_log("oil-furnace", date(2025, 1, 15), log_id=1), make_log("hrv", date(2025, 1, 16), log_id=2)]

    report = correlator.correlate(entries, weather)

    assert [t.maintenance.system_id for t in report.temperature_triggered] == ["oil-furnace"]
    assert report.temperature_triggered[0].temperature_low == -36.5


def test_northern_seasons():
    correlator = WeatherCorrelator(CorrelatorConfig(season_map=dict(NORTHERN_SEASONS)))

    assert correlator.season_of(date(2025, 10, 15)) == "pre-freeze-up"
    assert correlator.season_of(date(2025, 5, 1)) == "break-up"
    assert correlator.config.seasons == ["winter", "break-up", "summer", "pre-freeze-up"]


def test_analyze_weather_finds_cold_snap_periods(correlator):
    weather = [
        make_observation(date(2025, 1, 1), low=-32.0, high=-20.0),
        make_observation(date(2025, 1, 2), low=-38.0, high=-25.0, events=[cold_snap("extreme")]),
        make_observation(date(2025, 1, 3), low=-31.0, high=-22.0),
        make_observation(date(2025, 1, 4), low=-15.0, high=-5.0, precipitation=2.5),
        make_observation(date(2025, 1, 5), low=-33.0, high=-21.0),
        make_observation(date(2025, 1, 7), low=-34.0, high=-23.0),
    ]

    analysis = correlator.analyze_weather(weather)

    assert analysis.total_days == 6
    assert analysis.coldest_day.observed_on == date(2025, 1, 2)
    assert analysis.warmest_day.temperature == -5.0
    assert analysis.precipitation_days == 1
    assert len(analysis.extreme_events) == 1
    assert len(analysis.cold_snaps) == 1
    assert analysis.cold_snaps[0].start == date(2025, 1, 1)
    assert analysis.cold_snaps[0].days == 3
    assert analysis.cold_snaps[0].min_temp == -38.0


def test_analyze_empty_weather(correlator):
    analysis = correlator.analyze_weather([])

    assert analysis.total_days == 0
    assert analysis.coldest_day is None


def test_unknown_severity_threshold_is_rejected():
    with pytest.raises(ValueError):
        CorrelatorConfig(cold_severity_threshold="mild")
