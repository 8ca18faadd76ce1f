"""Swiss Ephemeris primitives used by the Panchang calculators.

Timestamps cross this boundary as Unix seconds; angles are degrees in
``[0, 360)``. Nothing here falls back to defaults: callers decide what a
missing event or a library error means for them.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Dict, Optional

import swisseph as swe


try:
    ENGINE_VERSION = f"swisseph-{swe.version}"
except AttributeError:
    ENGINE_VERSION = "swisseph-2.10"

UNIX_EPOCH_JD = 2440587.5
SECONDS_PER_DAY = 86400.0

BODIES: Dict[str, int] = {
    "Sun": swe.SUN,
    "Moon": swe.MOON,
}

AYANAMSHA_MAP = {
    "lahiri": swe.SIDM_LAHIRI,
    "krishnamurti": swe.SIDM_KRISHNAMURTI,
    "raman": swe.SIDM_RAMAN,
}

RISE = 1
SET = -1

# Standard refraction plus solar semi-diameter, and the lunar parallax term.
SUN_ALTITUDE_DEG = -0.8333
MOON_ALTITUDE_DEG = 0.125


@dataclass(frozen=True)
class Observer:
    latitude: float
    longitude: float
    elevation: float = 0.0


def observer_for(location) -> Observer:
    """Sea-level observer for a :class:`~panchang_api.schemas.Location`."""

    return Observer(float(location.latitude), float(location.longitude), 0.0)


def _backend_flag(backend: Optional[str] = None) -> int:
    """Return the Swiss Ephemeris backend flag based on environment configuration."""

    raw_backend = backend or os.getenv("EPHEMERIS_BACKEND")
    name = raw_backend.strip().lower() if raw_backend else "swieph"
    return swe.FLG_MOSEPH if name == "moseph" else swe.FLG_SWIEPH


def init_paths(ephe_dir: str | os.PathLike[str] | None) -> None:
    """Set the Swiss Ephemeris file search path when available."""

    if not ephe_dir:
        return

    path = os.fspath(ephe_dir)
    if os.path.isdir(path):
        swe.set_ephe_path(path)


def _body_code(body: str | int) -> int:
    if isinstance(body, int):
        return body
    try:
        return BODIES[body]
    except KeyError:
        raise ValueError(f"Unsupported body: {body}") from None


def to_jd(ts: float) -> float:
    return ts / SECONDS_PER_DAY + UNIX_EPOCH_JD


def from_jd(jd: float) -> float:
    return (jd - UNIX_EPOCH_JD) * SECONDS_PER_DAY


def to_timestamp(moment: datetime) -> float:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def from_timestamp(ts: Optional[float], tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """Convert Unix seconds to an aware datetime; ``None`` for unusable input."""

    if ts is None or not math.isfinite(ts):
        return None
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).astimezone(tz)
    except (OverflowError, OSError, ValueError):
        return None


def search_rise_set(
    body: str | int,
    observer: Observer,
    start_ts: float,
    direction: int,
    altitude_deg: float,
    limit_days: float = 1.0,
    backend: Optional[str] = None,
) -> Optional[float]:
    """Return the next rise (``direction=+1``) or set (``-1``) after ``start_ts``.

    The event is the moment the body's centre crosses ``altitude_deg`` of
    geometric altitude. ``None`` means no event was found within
    ``limit_days`` (circumpolar bodies, polar day or night). Library errors
    propagate as ``swe.Error``.
    """

    if direction not in (RISE, SET):
        raise ValueError("direction must be +1 (rise) or -1 (set)")

    rsmi = swe.CALC_RISE if direction == RISE else swe.CALC_SET
    rsmi |= swe.BIT_DISC_CENTER | swe.BIT_NO_REFRACTION
    jd_start = to_jd(start_ts)
    geopos = (observer.longitude, observer.latitude, observer.elevation)
    result, times = swe.rise_trans_true_hor(
        jd_start, _body_code(body), rsmi, geopos, 0.0, 0.0, altitude_deg, _backend_flag(backend)
    )
    if result < 0 or not times or times[0] <= 0.0:
        return None
    if times[0] - jd_start > limit_days:
        return None
    return from_jd(times[0])


def ecliptic_longitude(
    body: str | int,
    ts: float,
    ayanamsha: Optional[str] = None,
    backend: Optional[str] = None,
) -> float:
    """Geocentric ecliptic longitude of ``body``; sidereal when ``ayanamsha`` is set."""

    flag = _backend_flag(backend)
    if ayanamsha:
        mode = AYANAMSHA_MAP.get(ayanamsha.lower(), swe.SIDM_LAHIRI)
        swe.set_sid_mode(mode)
        flag |= swe.FLG_SIDEREAL
    values, _ = swe.calc_ut(to_jd(ts), _body_code(body), flag)
    return values[0] % 360.0


def moon_phase(ts: float, backend: Optional[str] = None) -> float:
    """Moon-Sun elongation: 0 new moon, 90 first quarter, 180 full moon."""

    moon = ecliptic_longitude("Moon", ts, backend=backend)
    sun = ecliptic_longitude("Sun", ts, backend=backend)
    return (moon - sun) % 360.0


class SwissEphemeris:
    """Ephemeris primitives bound to one backend configuration.

    The Panchang service receives an instance of this class (or anything
    with the same three methods) instead of calling the module functions,
    which keeps the library swappable in tests.
    """

    def __init__(self, backend: Optional[str] = None, ephe_path: Optional[str] = None) -> None:
        self.backend = backend
        init_paths(ephe_path or os.getenv("EPHEMERIS_PATH"))

    def search_rise_set(
        self,
        body: str,
        observer: Observer,
        start_ts: float,
        direction: int,
        altitude_deg: float,
        limit_days: float = 1.0,
    ) -> Optional[float]:
        return search_rise_set(
            body, observer, start_ts, direction, altitude_deg, limit_days, backend=self.backend
        )

    def moon_phase(self, ts: float) -> float:
        return moon_phase(ts, backend=self.backend)

    def ecliptic_longitude(self, body: str, ts: float, ayanamsha: Optional[str] = None) -> float:
        return ecliptic_longitude(body, ts, ayanamsha=ayanamsha, backend=self.backend)
