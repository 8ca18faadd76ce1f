from datetime import date, datetime

import pytest

from panchang_api.services.astro_info import compute_astronomical_info


DAY = date(2024, 3, 7)


def test_events_are_offsets_from_local_midnight(delhi, ephemerides):
    info, fallbacks = compute_astronomical_info(DAY, delhi, ephemerides.fixed(phase=90.0))
    assert fallbacks == []
    assert info.sunrise == datetime(2024, 3, 7, 6, 30, tzinfo=delhi.tzinfo)
    assert info.sunset == datetime(2024, 3, 7, 18, 15, tzinfo=delhi.tzinfo)
    assert info.moonrise == datetime(2024, 3, 7, 9, 0, tzinfo=delhi.tzinfo)
    assert info.moonset == datetime(2024, 3, 7, 21, 0, tzinfo=delhi.tzinfo)
    assert info.lunar_phase == pytest.approx(0.25)


def test_sunrise_error_uses_six_am_local(delhi, ephemerides):
    class NoSunrise(ephemerides.fixed):
        def search_rise_set(self, body, observer, start_ts, direction, altitude_deg, limit_days=1.0):
            if body == "Sun" and direction == 1:
                raise RuntimeError("search failed")
            return super().search_rise_set(body, observer, start_ts, direction, altitude_deg)

    info, fallbacks = compute_astronomical_info(DAY, delhi, NoSunrise())
    assert fallbacks == ["sunrise"]
    assert info.sunrise == datetime(2024, 3, 7, 6, 0, tzinfo=delhi.tzinfo)
    assert info.sunset == datetime(2024, 3, 7, 18, 15, tzinfo=delhi.tzinfo)


def test_missing_events_use_fixed_clock_times(new_york, ephemerides):
    class NothingFound(ephemerides.fixed):
        def search_rise_set(self, *args, **kwargs):
            return None

    info, fallbacks = compute_astronomical_info(DAY, new_york, NothingFound())
    assert fallbacks == ["sunrise", "sunset", "moonrise", "moonset"]
    tz = new_york.tzinfo
    assert info.sunrise == datetime(2024, 3, 7, 6, 0, tzinfo=tz)
    assert info.sunset == datetime(2024, 3, 7, 18, 0, tzinfo=tz)
    assert info.moonrise == datetime(2024, 3, 7, 0, 0, tzinfo=tz)
    assert info.moonset == datetime(2024, 3, 7, 12, 0, tzinfo=tz)


def test_phase_failure_reports_new_moon(delhi, ephemerides):
    info, fallbacks = compute_astronomical_info(DAY, delhi, ephemerides.broken())
    assert info.lunar_phase == 0.0
    assert set(fallbacks) == {"sunrise", "sunset", "moonrise", "moonset", "lunar_phase"}


@pytest.mark.parametrize("angle", [float("nan"), float("inf")])
def test_non_finite_phase_is_replaced(delhi, ephemerides, angle):
    info, fallbacks = compute_astronomical_info(DAY, delhi, ephemerides.fixed(phase=angle))
    assert info.lunar_phase == 0.0
    assert fallbacks == ["lunar_phase"]


def test_phase_is_normalised(delhi, ephemerides):
    info, _ = compute_astronomical_info(DAY, delhi, ephemerides.fixed(phase=540.0))
    assert info.lunar_phase == pytest.approx(0.5)
