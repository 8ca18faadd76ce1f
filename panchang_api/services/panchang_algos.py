"""Tithi, nakshatra, yoga and karana from Sun and Moon longitudes.

Each element is an index obtained by modular arithmetic on one or two
ecliptic longitudes, mapped to a name through a fixed table. Start and
end times default to fixed windows around the calculation instant; with
``precise=True`` the enclosing segment boundaries are located by
bisection on the underlying angle instead.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional, Tuple

from ..schemas.panchang import Karana, Nakshatra, Tithi, Yoga
from . import ephem


logger = logging.getLogger(__name__)

TITHI_NAMES = [
    "Pratipada",
    "Dwitiya",
    "Tritiya",
    "Chaturthi",
    "Panchami",
    "Shashthi",
    "Saptami",
    "Ashtami",
    "Navami",
    "Dashami",
    "Ekadashi",
    "Dwadashi",
    "Trayodashi",
    "Chaturdashi",
    "Purnima/Amavasya",
]

# (name, ruler, deity)
NAKSHATRAS = [
    ("Ashwini", "Ketu", "Ashwini Kumaras"),
    ("Bharani", "Venus", "Yama"),
    ("Krittika", "Sun", "Agni"),
    ("Rohini", "Moon", "Brahma"),
    ("Mrigashira", "Mars", "Soma"),
    ("Ardra", "Rahu", "Rudra"),
    ("Punarvasu", "Jupiter", "Aditi"),
    ("Pushya", "Saturn", "Brihaspati"),
    ("Ashlesha", "Mercury", "Sarpa"),
    ("Magha", "Ketu", "Pitru"),
    ("Purva Phalguni", "Venus", "Bhaga"),
    ("Uttara Phalguni", "Sun", "Aryaman"),
    ("Hasta", "Moon", "Savitri"),
    ("Chitra", "Mars", "Vishwakarma"),
    ("Swati", "Rahu", "Vayu"),
    ("Vishakha", "Jupiter", "Indra-Agni"),
    ("Anuradha", "Saturn", "Mitra"),
    ("Jyeshtha", "Mercury", "Indra"),
    ("Mula", "Ketu", "Nirrti"),
    ("Purva Ashadha", "Venus", "Apas"),
    ("Uttara Ashadha", "Sun", "Vishwadevas"),
    ("Shravana", "Moon", "Vishnu"),
    ("Dhanishta", "Mars", "Vasus"),
    ("Shatabhisha", "Rahu", "Varuna"),
    ("Purva Bhadrapada", "Jupiter", "Ajaikapada"),
    ("Uttara Bhadrapada", "Saturn", "Ahirbudhnya"),
    ("Revati", "Mercury", "Pushan"),
]

YOGA_NAMES = [
    "Vishkumbha",
    "Priti",
    "Ayushman",
    "Saubhagya",
    "Shobhana",
    "Atiganda",
    "Sukarma",
    "Dhriti",
    "Shula",
    "Ganda",
    "Vriddhi",
    "Dhruva",
    "Vyaghata",
    "Harshana",
    "Vajra",
    "Siddhi",
    "Vyatipata",
    "Variyan",
    "Parigha",
    "Shiva",
    "Siddha",
    "Sadhya",
    "Shubha",
    "Shukla",
    "Brahma",
    "Indra",
    "Vaidhriti",
]

KARANA_NAMES = [
    "Bava",
    "Balava",
    "Kaulava",
    "Taitila",
    "Garija",
    "Vanija",
    "Vishti",
    "Shakuni",
]

TITHI_SPAN = 12.0
NAKSHATRA_SPAN = 360.0 / 27.0
YOGA_SPAN = 360.0 / 27.0
KARANA_SPAN = 6.0

DAY = timedelta(hours=24)
HALF_DAY = timedelta(hours=12)


# --- indices ---


def _wrap(deg: float) -> float:
    return (deg + 360.0) % 360.0


def elongation(moon_lon: float, sun_lon: float) -> float:
    return _wrap(moon_lon - sun_lon)


def tithi_index(moon_lon: float, sun_lon: float) -> int:
    return min(int(elongation(moon_lon, sun_lon) // TITHI_SPAN) + 1, 30)


def nakshatra_index(moon_lon: float) -> int:
    return min(int(_wrap(moon_lon) * 27 // 360) + 1, 27)


def yoga_index(moon_lon: float, sun_lon: float) -> int:
    total = _wrap((moon_lon + sun_lon) % 360.0)
    return min(int(total * 27 // 360) + 1, 27)


def karana_half_index(moon_lon: float, sun_lon: float) -> int:
    return min(int(elongation(moon_lon, sun_lon) // KARANA_SPAN) + 1, 60)


def karana_cycle_number(half_tithi: int) -> int:
    return (half_tithi - 1) % len(KARANA_NAMES) + 1


def tithi_name(number: int) -> str:
    return TITHI_NAMES[(number - 1) % len(TITHI_NAMES)]


def paksha_for(number: int) -> str:
    return "Shukla" if number <= 15 else "Krishna"


def yoga_name(number: int) -> str:
    return YOGA_NAMES[(number - 1) % len(YOGA_NAMES)]


def karana_name(number: int) -> str:
    return KARANA_NAMES[(number - 1) % len(KARANA_NAMES)]


# --- boundary search ---


def _unwrap(value: float, reference: float, forward: bool) -> float:
    """Unwrap an angle measurement relative to a reference value."""
    if forward:
        while value < reference:
            value += 360.0
    else:
        while value > reference:
            value -= 360.0
    return value


def find_boundary(
    reference_ts: float,
    reference_value: float,
    target: float,
    forward: bool,
    getter: Callable[[float], float],
    step_hours: float = 6.0,
    max_hours: float = 96.0,
    iterations: int = 50,
) -> float:
    """Locate the Unix time at which ``getter`` crosses ``target`` degrees.

    The angle is assumed to increase monotonically with time. The search
    steps outward from the reference until the target is bracketed, then
    bisects. Raises ``ValueError`` when no crossing is bracketed within
    ``max_hours``.
    """

    unwrapped_target = target
    if forward:
        while unwrapped_target < reference_value:
            unwrapped_target += 360.0
    else:
        while unwrapped_target > reference_value:
            unwrapped_target -= 360.0

    direction = 1 if forward else -1
    step = step_hours * 3600.0
    limit = max_hours * 3600.0

    candidate_ts = reference_ts
    offset = step
    bracketed = False
    while offset <= limit:
        candidate_ts = reference_ts + direction * offset
        candidate_value = _unwrap(getter(candidate_ts), reference_value, forward)
        if forward and candidate_value >= unwrapped_target:
            bracketed = True
            break
        if not forward and candidate_value <= unwrapped_target:
            bracketed = True
            break
        offset += step

    if not bracketed:
        raise ValueError(f"no crossing of {target:.4f} deg within {max_hours:g}h")

    if forward:
        low_ts, high_ts = reference_ts, candidate_ts
    else:
        low_ts, high_ts = candidate_ts, reference_ts

    for _ in range(iterations):
        midpoint = low_ts + (high_ts - low_ts) / 2
        mid_value = _unwrap(getter(midpoint), reference_value, forward)
        if forward:
            if mid_value < unwrapped_target:
                low_ts = midpoint
            else:
                high_ts = midpoint
        else:
            if mid_value > unwrapped_target:
                high_ts = midpoint
            else:
                low_ts = midpoint

    return high_ts if forward else low_ts


def _segment_bounds(
    ts: float,
    value: float,
    span: float,
    getter: Callable[[float], float],
) -> Tuple[float, float]:
    start_target = (value // span) * span
    end_target = (start_target + span) % 360.0
    start = find_boundary(ts, value, start_target, forward=False, getter=getter)
    end = find_boundary(ts, value, end_target, forward=True, getter=getter)
    return start, end


def as_local(moment: datetime, tz: tzinfo) -> datetime:
    """``moment`` in ``tz``, or unchanged when the conversion leaves the datetime range."""
    try:
        return moment.astimezone(tz)
    except (OverflowError, ValueError):
        return moment


def shift(moment: datetime, delta: timedelta) -> datetime:
    """``moment + delta``, or ``moment`` itself when the sum leaves the datetime range."""
    try:
        return moment + delta
    except (OverflowError, ValueError):
        return moment


def _window(
    instant: datetime,
    before: timedelta,
    after: timedelta,
    tz: tzinfo,
    precise: Optional[Tuple[float, float, float, Callable[[float], float]]],
    element: str,
) -> Tuple[datetime, datetime]:
    if precise is not None:
        ts, value, span, getter = precise
        try:
            start_ts, end_ts = _segment_bounds(ts, value, span, getter)
            start = ephem.from_timestamp(start_ts, tz)
            end = ephem.from_timestamp(end_ts, tz)
            if start is not None and end is not None:
                return start, end
        except Exception as exc:
            logger.warning("panchang.%s.boundary_error", element, extra={"error": repr(exc)})
    local = as_local(instant, tz)
    return shift(local, -before), shift(local, after)


# --- calculators ---


def _utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _longitudes(ephemeris, ts: float, ayanamsha: Optional[str]) -> Tuple[float, float]:
    moon = ephemeris.ecliptic_longitude("Moon", ts, ayanamsha)
    sun = ephemeris.ecliptic_longitude("Sun", ts, ayanamsha)
    return moon, sun


def default_tithi(instant: datetime, tz: tzinfo = timezone.utc) -> Tithi:
    local = as_local(_utc(instant), tz)
    return Tithi(
        number=1, name=tithi_name(1), paksha=paksha_for(1), start_time=local, end_time=shift(local, DAY)
    )


def default_nakshatra(instant: datetime, tz: tzinfo = timezone.utc) -> Nakshatra:
    local = as_local(_utc(instant), tz)
    name, ruler, deity = NAKSHATRAS[0]
    return Nakshatra(
        number=1, name=name, ruler=ruler, deity=deity, start_time=local, end_time=shift(local, DAY)
    )


def default_yoga(instant: datetime, tz: tzinfo = timezone.utc) -> Yoga:
    local = as_local(_utc(instant), tz)
    return Yoga(number=1, name=yoga_name(1), start_time=local, end_time=shift(local, DAY))


def default_karana(instant: datetime, tz: tzinfo = timezone.utc) -> Karana:
    local = as_local(_utc(instant), tz)
    return Karana(
        number=1, half_tithi=1, name=karana_name(1), start_time=local, end_time=shift(local, HALF_DAY)
    )


def compute_tithi(
    instant: datetime,
    ephemeris,
    *,
    ayanamsha: Optional[str] = None,
    precise: bool = False,
    tz: tzinfo = timezone.utc,
) -> Tuple[Tithi, bool]:
    """Return the tithi at ``instant`` and whether the default was used."""

    instant = _utc(instant)
    try:
        ts = ephem.to_timestamp(instant)
        moon, sun = _longitudes(ephemeris, ts, ayanamsha)
        number = tithi_index(moon, sun)

        def getter(t: float) -> float:
            return elongation(*_longitudes(ephemeris, t, ayanamsha))

        search = (ts, elongation(moon, sun), TITHI_SPAN, getter) if precise else None
        start, end = _window(instant, DAY, DAY, tz, search, "tithi")
        return (
            Tithi(
                number=number,
                name=tithi_name(number),
                paksha=paksha_for(number),
                start_time=start,
                end_time=end,
            ),
            False,
        )
    except Exception as exc:
        logger.warning("panchang.tithi.fallback", extra={"error": repr(exc)})
        return default_tithi(instant, tz), True


def compute_nakshatra(
    instant: datetime,
    ephemeris,
    *,
    ayanamsha: Optional[str] = None,
    precise: bool = False,
    tz: tzinfo = timezone.utc,
) -> Tuple[Nakshatra, bool]:
    """Return the Moon's nakshatra at ``instant`` with its ruler and deity."""

    instant = _utc(instant)
    try:
        ts = ephem.to_timestamp(instant)
        moon = ephemeris.ecliptic_longitude("Moon", ts, ayanamsha)
        number = nakshatra_index(moon)
        name, ruler, deity = NAKSHATRAS[number - 1]

        def getter(t: float) -> float:
            return _wrap(ephemeris.ecliptic_longitude("Moon", t, ayanamsha))

        search = (ts, _wrap(moon), NAKSHATRA_SPAN, getter) if precise else None
        start, end = _window(instant, timedelta(0), DAY, tz, search, "nakshatra")
        return (
            Nakshatra(
                number=number,
                name=name,
                ruler=ruler,
                deity=deity,
                start_time=start,
                end_time=end,
            ),
            False,
        )
    except Exception as exc:
        logger.warning("panchang.nakshatra.fallback", extra={"error": repr(exc)})
        return default_nakshatra(instant, tz), True


def compute_yoga(
    instant: datetime,
    ephemeris,
    *,
    ayanamsha: Optional[str] = None,
    precise: bool = False,
    tz: tzinfo = timezone.utc,
) -> Tuple[Yoga, bool]:
    instant = _utc(instant)
    try:
        ts = ephem.to_timestamp(instant)
        moon, sun = _longitudes(ephemeris, ts, ayanamsha)
        number = yoga_index(moon, sun)

        def getter(t: float) -> float:
            m, s = _longitudes(ephemeris, t, ayanamsha)
            return (m + s) % 360.0

        search = (ts, (moon + sun) % 360.0, YOGA_SPAN, getter) if precise else None
        start, end = _window(instant, timedelta(0), DAY, tz, search, "yoga")
        return Yoga(number=number, name=yoga_name(number), start_time=start, end_time=end), False
    except Exception as exc:
        logger.warning("panchang.yoga.fallback", extra={"error": repr(exc)})
        return default_yoga(instant, tz), True


def compute_karana(
    instant: datetime,
    ephemeris,
    *,
    ayanamsha: Optional[str] = None,
    precise: bool = False,
    tz: tzinfo = timezone.utc,
) -> Tuple[Karana, bool]:
    """Return the karana (half tithi) at ``instant``.

    ``half_tithi`` runs 1..60 across the lunar month; ``number`` is its
    position in the 8-name cycle.
    """

    instant = _utc(instant)
    try:
        ts = ephem.to_timestamp(instant)
        moon, sun = _longitudes(ephemeris, ts, ayanamsha)
        half = karana_half_index(moon, sun)
        number = karana_cycle_number(half)

        def getter(t: float) -> float:
            return elongation(*_longitudes(ephemeris, t, ayanamsha))

        search = (ts, elongation(moon, sun), KARANA_SPAN, getter) if precise else None
        start, end = _window(instant, timedelta(0), HALF_DAY, tz, search, "karana")
        return (
            Karana(
                number=number,
                half_tithi=half,
                name=karana_name(number),
                start_time=start,
                end_time=end,
            ),
            False,
        )
    except Exception as exc:
        logger.warning("panchang.karana.fallback", extra={"error": repr(exc)})
        return default_karana(instant, tz), True
