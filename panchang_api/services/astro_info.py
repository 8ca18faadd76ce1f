"""Sunrise, sunset, moonrise, moonset and lunar phase for one civil day."""

from __future__ import annotations

import logging
import math
from datetime import date as date_cls, datetime, time as time_cls, timezone
from typing import List, Optional, Tuple

from ..schemas.panchang import AstronomicalInfo, Location
from . import ephem


logger = logging.getLogger(__name__)

# (field, body, direction, altitude correction, fallback local hour)
EVENTS = (
    ("sunrise", "Sun", ephem.RISE, ephem.SUN_ALTITUDE_DEG, 6),
    ("sunset", "Sun", ephem.SET, ephem.SUN_ALTITUDE_DEG, 18),
    ("moonrise", "Moon", ephem.RISE, ephem.MOON_ALTITUDE_DEG, 0),
    ("moonset", "Moon", ephem.SET, ephem.MOON_ALTITUDE_DEG, 12),
)


def local_clock(day: date_cls, location: Location, hour: int) -> datetime:
    """``hour``:00 on ``day`` in the location's own timezone."""

    return datetime.combine(day, time_cls(hour, 0), tzinfo=location.tzinfo)


def default_astronomical_info(day: date_cls, location: Location) -> AstronomicalInfo:
    values = {field: local_clock(day, location, hour) for field, _, _, _, hour in EVENTS}
    return AstronomicalInfo(lunar_phase=0.0, **values)


def _search_event(
    ephemeris,
    field: str,
    body: str,
    direction: int,
    altitude: float,
    observer: ephem.Observer,
    start_ts: float,
    location: Location,
) -> Optional[datetime]:
    try:
        ts = ephemeris.search_rise_set(body, observer, start_ts, direction, altitude)
    except Exception as exc:
        logger.warning(
            "panchang.%s.error",
            field,
            extra={"error": repr(exc), "lat": observer.latitude, "lon": observer.longitude},
        )
        return None
    moment = ephem.from_timestamp(ts, location.tzinfo)
    if moment is None:
        logger.warning(
            "panchang.%s.not_found",
            field,
            extra={"lat": observer.latitude, "lon": observer.longitude, "tz": location.timezone},
        )
    return moment


def compute_astronomical_info(
    day: date_cls,
    location: Location,
    ephemeris,
) -> Tuple[AstronomicalInfo, List[str]]:
    """Return the day's astronomical info and the names of defaulted fields.

    Events are searched forward from local midnight. Any event that cannot
    be found, or whose search raises, is replaced by a fixed local clock
    time: sunrise 06:00, sunset 18:00, moonrise 00:00, moonset 12:00. A
    failed phase lookup reports a new moon.
    """

    observer = ephem.observer_for(location)
    start_ts = ephem.to_timestamp(local_clock(day, location, 0))
    fallbacks: List[str] = []
    values = {}

    for field, body, direction, altitude, hour in EVENTS:
        moment = _search_event(
            ephemeris, field, body, direction, altitude, observer, start_ts, location
        )
        if moment is None:
            moment = local_clock(day, location, hour)
            fallbacks.append(field)
        values[field] = moment

    noon_ts = ephem.to_timestamp(datetime.combine(day, time_cls(12, 0), tzinfo=timezone.utc))
    try:
        angle = float(ephemeris.moon_phase(noon_ts))
        if not math.isfinite(angle):
            raise ValueError(f"non-finite moon phase: {angle}")
        phase = (angle % 360.0) / 360.0
    except Exception as exc:
        logger.warning("panchang.lunar_phase.error", extra={"error": repr(exc)})
        phase = 0.0
        fallbacks.append("lunar_phase")

    return AstronomicalInfo(lunar_phase=phase, **values), fallbacks
