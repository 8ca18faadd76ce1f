"""Helpers for turning partial place inputs into a :class:`Location`."""

import logging
import os
from typing import Any, Dict, Optional, Tuple

from timezonefinder import TimezoneFinder

from ...schemas.panchang import Location


logger = logging.getLogger(__name__)

_TF = TimezoneFinder()

DEF_LAT = float(os.getenv("DEFAULT_PLACE_LAT", "28.6139"))
DEF_LON = float(os.getenv("DEFAULT_PLACE_LON", "77.2090"))
DEF_TZ = os.getenv("DEFAULT_PLACE_TZ", "Asia/Kolkata")
DEF_LBL = os.getenv("DEFAULT_PLACE_LABEL", "New Delhi")


def default_location() -> Location:
    return Location(latitude=DEF_LAT, longitude=DEF_LON, timezone=DEF_TZ, name=DEF_LBL)


def infer_tz(lat: float, lon: float) -> Optional[str]:
    """Infer timezone name for a coordinate pair."""

    try:
        return _TF.timezone_at(lng=lon, lat=lat)
    except ValueError:
        logger.warning("panchang.place.tz_lookup_failed", extra={"lat": lat, "lon": lon})
        return None


def normalize_place(place: Optional[Dict[str, Any]]) -> Tuple[Location, Dict[str, Any]]:
    """Build a Location from ``lat``/``lon``/``tz``/``name`` keys and report defaults used."""

    flags: Dict[str, Any] = {
        "place_defaults_used": False,
        "tz_inferred": False,
        "default_reason": None,
    }

    if not place:
        flags.update({"place_defaults_used": True, "default_reason": "missing_place"})
        return default_location(), flags

    lat = place.get("lat")
    lon = place.get("lon")
    tz = place.get("tz")
    name = place.get("name")

    if lat is None or lon is None:
        flags.update({"place_defaults_used": True, "default_reason": "missing_latlon"})
        location = Location(
            latitude=DEF_LAT,
            longitude=DEF_LON,
            timezone=tz or DEF_TZ,
            name=name or DEF_LBL,
        )
        return location, flags

    lat, lon = float(lat), float(lon)
    if not tz:
        tz_guess = infer_tz(lat, lon)
        flags["default_reason"] = "missing_tz"
        if tz_guess:
            tz = tz_guess
            flags["tz_inferred"] = True
        else:
            tz = DEF_TZ

    location = Location(
        latitude=lat,
        longitude=lon,
        timezone=tz,
        name=name or f"{lat:.4f}, {lon:.4f}",
    )
    return location, flags
