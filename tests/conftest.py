from __future__ import annotations

from types import SimpleNamespace
from typing import Dict, Optional, Tuple

import pytest

from panchang_api.routers import panchang as panchang_router
from panchang_api.schemas import Location


RISE_SET_HOURS: Dict[Tuple[str, int], float] = {
    ("Sun", 1): 6.5,
    ("Sun", -1): 18.25,
    ("Moon", 1): 9.0,
    ("Moon", -1): 21.0,
}


class FixedEphemeris:
    """Constant longitudes and rise/set times at fixed offsets from the search start."""

    def __init__(self, moon: float = 100.0, sun: float = 40.0, phase: float = 60.0) -> None:
        self.moon = moon
        self.sun = sun
        self.phase = phase
        self.calls = 0

    def search_rise_set(self, body, observer, start_ts, direction, altitude_deg, limit_days=1.0):
        return start_ts + RISE_SET_HOURS[(body, direction)] * 3600.0

    def moon_phase(self, ts: float) -> float:
        return self.phase

    def ecliptic_longitude(self, body: str, ts: float, ayanamsha: Optional[str] = None) -> float:
        self.calls += 1
        return self.moon if body == "Moon" else self.sun


class LinearEphemeris(FixedEphemeris):
    """Longitudes advancing uniformly from ``epoch_ts`` (degrees per day)."""

    def __init__(self, epoch_ts: float, moon0: float, sun0: float, moon_rate=13.2, sun_rate=1.0):
        super().__init__(moon0, sun0)
        self.epoch_ts = epoch_ts
        self.moon_rate = moon_rate
        self.sun_rate = sun_rate

    def ecliptic_longitude(self, body, ts, ayanamsha=None):
        days = (ts - self.epoch_ts) / 86400.0
        if body == "Moon":
            return (self.moon + self.moon_rate * days) % 360.0
        return (self.sun + self.sun_rate * days) % 360.0


class BrokenEphemeris:
    """Every primitive raises."""

    def search_rise_set(self, *args, **kwargs):
        raise RuntimeError("rise/set unavailable")

    def moon_phase(self, ts):
        raise RuntimeError("phase unavailable")

    def ecliptic_longitude(self, body, ts, ayanamsha=None):
        raise RuntimeError("longitude unavailable")


@pytest.fixture
def delhi() -> Location:
    return Location(latitude=28.6139, longitude=77.2090, timezone="Asia/Kolkata", name="New Delhi")


@pytest.fixture
def tromso() -> Location:
    return Location(latitude=69.6492, longitude=18.9553, timezone="Europe/Oslo", name="Tromso")


@pytest.fixture
def new_york() -> Location:
    return Location(latitude=40.7128, longitude=-74.0060, timezone="America/New_York", name="New York")


@pytest.fixture(autouse=True)
def _clear_response_cache():
    panchang_router.CACHE.clear()
    yield
    panchang_router.CACHE.clear()


@pytest.fixture
def ephemerides() -> SimpleNamespace:
    return SimpleNamespace(fixed=FixedEphemeris, linear=LinearEphemeris, broken=BrokenEphemeris)
