from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest
import swisseph as swe

from panchang_api.services import ephem


IST = ZoneInfo("Asia/Kolkata")


def _ts(*args) -> float:
    return datetime(*args, tzinfo=timezone.utc).timestamp()


def test_julian_day_conversions():
    assert ephem.to_jd(0.0) == 2440587.5
    assert ephem.from_jd(2451545.0) == pytest.approx(_ts(2000, 1, 1, 12))


def test_from_timestamp_rejects_non_finite():
    assert ephem.from_timestamp(None) is None
    assert ephem.from_timestamp(float("nan")) is None
    assert ephem.from_timestamp(float("inf")) is None
    moment = ephem.from_timestamp(_ts(2024, 3, 7, 12), IST)
    assert moment.utcoffset().total_seconds() == 5.5 * 3600
    assert moment.hour == 17 and moment.minute == 30


def test_observer_is_sea_level(delhi):
    observer = ephem.observer_for(delhi)
    assert observer == ephem.Observer(28.6139, 77.2090, 0.0)


def test_delhi_sunrise_and_sunset():
    observer = ephem.Observer(28.6139, 77.2090)
    midnight = datetime.combine(datetime(2024, 3, 7).date(), time(0, 0), tzinfo=IST).timestamp()

    rise = ephem.search_rise_set("Sun", observer, midnight, ephem.RISE, ephem.SUN_ALTITUDE_DEG, backend="moseph")
    sunset = ephem.search_rise_set("Sun", observer, midnight, ephem.SET, ephem.SUN_ALTITUDE_DEG, backend="moseph")

    rise_local = ephem.from_timestamp(rise, IST)
    set_local = ephem.from_timestamp(sunset, IST)
    assert time(6, 30) <= rise_local.time() <= time(6, 55)
    assert time(18, 15) <= set_local.time() <= time(18, 35)


def test_midnight_sun_has_no_sunrise():
    observer = ephem.Observer(69.6492, 18.9553)
    start = datetime(2024, 6, 21, tzinfo=ZoneInfo("Europe/Oslo")).timestamp()
    assert ephem.search_rise_set("Sun", observer, start, ephem.RISE, ephem.SUN_ALTITUDE_DEG, backend="moseph") is None


def test_invalid_direction():
    with pytest.raises(ValueError):
        ephem.search_rise_set("Sun", ephem.Observer(0.0, 0.0), 0.0, 0, 0.0)


@pytest.mark.parametrize("body", ["Vulcan", "Mercury"])
def test_unknown_body(body):
    with pytest.raises(ValueError):
        ephem.ecliptic_longitude(body, 0.0)


def test_equinox_sun_longitude_and_ayanamsha():
    ts = _ts(2024, 3, 20, 3, 6)
    tropical = ephem.ecliptic_longitude("Sun", ts, backend="moseph")
    assert min(tropical, 360.0 - tropical) < 0.05

    sidereal = ephem.ecliptic_longitude("Sun", ts, ayanamsha="lahiri", backend="moseph")
    assert (tropical - sidereal) % 360.0 == pytest.approx(24.2, abs=0.2)


def test_moon_phase_near_new_and_full_moon():
    new_moon = ephem.moon_phase(_ts(2024, 4, 8, 18, 21), backend="moseph")
    assert min(new_moon, 360.0 - new_moon) < 0.5

    full_moon = ephem.moon_phase(_ts(2024, 4, 23, 23, 49), backend="moseph")
    assert full_moon == pytest.approx(180.0, abs=0.5)


def test_swiss_ephemeris_wrapper_delegates():
    eph = ephem.SwissEphemeris(backend="moseph")
    ts = _ts(2024, 3, 7, 12)
    assert eph.ecliptic_longitude("Moon", ts) == ephem.ecliptic_longitude("Moon", ts, backend="moseph")
    assert 0.0 <= eph.moon_phase(ts) < 360.0


def test_backend_selected_from_environment(monkeypatch):
    monkeypatch.setenv("EPHEMERIS_BACKEND", "moseph")
    assert ephem._backend_flag() == swe.FLG_MOSEPH
    assert ephem._backend_flag("swieph") == swe.FLG_SWIEPH

    monkeypatch.delenv("EPHEMERIS_BACKEND")
    assert ephem._backend_flag() == swe.FLG_SWIEPH
