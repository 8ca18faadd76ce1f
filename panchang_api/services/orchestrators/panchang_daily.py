"""Assemble a :class:`DailyPanchang` for one (date, location) pair.

Every stage is guarded separately and replaced by its default when it
fails, so a valid date and location always produce a complete record.
The names of defaulted fields are reported in ``DailyPanchang.fallbacks``.
"""

from __future__ import annotations

import calendar
import logging
import os
from datetime import date as date_cls, datetime, time as time_cls, timezone
from typing import List, Optional, Union

from starlette.concurrency import run_in_threadpool

from ...schemas.panchang import DailyPanchang, Location, MonthlyPanchang, Span
from .. import ephem
from ..astro_info import compute_astronomical_info, default_astronomical_info
from ..festivals import festivals_for_date, merge_festivals
from ..muhurta import compute_muhurtas
from ..panchang_algos import (
    as_local,
    compute_karana,
    compute_nakshatra,
    compute_tithi,
    compute_yoga,
)


logger = logging.getLogger(__name__)

DateInput = Union[date_cls, datetime]

_UNSET = object()


class PanchangError(RuntimeError):
    """Raised only when a Panchang cannot be assembled at all."""


def _ayanamsha_setting() -> Optional[str]:
    raw = os.getenv("PANCHANG_AYANAMSHA", "tropical").strip().lower()
    return None if raw in {"", "tropical", "none"} else raw


def _precise_enabled() -> bool:
    return os.getenv("PANCHANG_PRECISE_BOUNDARIES", "false").lower() == "true"


def normalize_day(value: DateInput, location: Location) -> date_cls:
    """Calendar day of ``value``; aware datetimes are read in the location's timezone."""

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return as_local(value, location.tzinfo).date()
        return value.date()
    return value


def noon_utc(day: date_cls) -> datetime:
    return datetime.combine(day, time_cls(12, 0), tzinfo=timezone.utc)


def _valid_moment(value: object) -> bool:
    return isinstance(value, datetime) and value.tzinfo is not None


def _validated_span(span: Span, field: str, fallback: datetime, fallbacks: List[str]) -> Span:
    update = {}
    for attr in ("start_time", "end_time"):
        if not _valid_moment(getattr(span, attr)):
            update[attr] = fallback
            fallbacks.append(f"{field}.{attr}")
    return span.model_copy(update=update) if update else span


class PanchangService:
    """Stateless Panchang calculator.

    ``ephemeris`` provides ``search_rise_set``, ``moon_phase`` and
    ``ecliptic_longitude``; it defaults to :class:`ephem.SwissEphemeris`.
    ``ayanamsha`` selects sidereal longitudes (``None`` for tropical) and
    ``precise_boundaries`` switches element windows from fixed spans to
    bisected segment boundaries. Both default to the environment settings.
    """

    def __init__(
        self,
        ephemeris=None,
        *,
        ayanamsha=_UNSET,
        precise_boundaries: Optional[bool] = None,
    ) -> None:
        self.ephemeris = ephemeris if ephemeris is not None else ephem.SwissEphemeris()
        self.ayanamsha = _ayanamsha_setting() if ayanamsha is _UNSET else ayanamsha
        self.precise = _precise_enabled() if precise_boundaries is None else precise_boundaries

    @property
    def cache_token(self) -> str:
        return f"{type(self.ephemeris).__name__}:{self.ayanamsha or 'tropical'}:{int(self.precise)}"

    async def calculate_daily_panchang(self, day: DateInput, location: Location) -> DailyPanchang:
        try:
            return await run_in_threadpool(self._build, normalize_day(day, location), location)
        except Exception as exc:
            logger.exception("panchang.calculate.failed", extra={"date": str(day)})
            raise PanchangError(f"Failed to calculate panchang data: {exc}") from exc

    async def calculate_month(self, year: int, month: int, location: Location) -> MonthlyPanchang:
        _, days_in_month = calendar.monthrange(year, month)
        # One day at a time: the Swiss Ephemeris keeps process-wide state.
        days = []
        for d in range(1, days_in_month + 1):
            days.append(await self.calculate_daily_panchang(date_cls(year, month, d), location))
        festivals = merge_festivals(*(day.festivals for day in days))
        return MonthlyPanchang(
            year=year, month=month, location=location, days=days, festivals=festivals
        )

    def _build(self, day: date_cls, location: Location) -> DailyPanchang:
        instant = noon_utc(day)
        tz = location.tzinfo
        fallbacks: List[str] = []

        try:
            astro, astro_fallbacks = compute_astronomical_info(day, location, self.ephemeris)
            fallbacks.extend(astro_fallbacks)
        except Exception as exc:
            logger.warning("panchang.astronomical_info.fallback", extra={"error": repr(exc)})
            astro = default_astronomical_info(day, location)
            fallbacks.extend(["sunrise", "sunset", "moonrise", "moonset", "lunar_phase"])

        opts = {"ayanamsha": self.ayanamsha, "precise": self.precise, "tz": tz}
        tithi, failed = compute_tithi(instant, self.ephemeris, **opts)
        if failed:
            fallbacks.append("tithi")
        nakshatra, failed = compute_nakshatra(instant, self.ephemeris, **opts)
        if failed:
            fallbacks.append("nakshatra")
        yoga, failed = compute_yoga(instant, self.ephemeris, **opts)
        if failed:
            fallbacks.append("yoga")
        karana, failed = compute_karana(instant, self.ephemeris, **opts)
        if failed:
            fallbacks.append("karana")

        try:
            festivals = festivals_for_date(day, tithi, nakshatra)
        except Exception as exc:
            logger.warning("panchang.festivals.fallback", extra={"error": repr(exc)})
            festivals = []
            fallbacks.append("festivals")

        local_instant = as_local(instant, tz)
        tithi = _validated_span(tithi, "tithi", local_instant, fallbacks)
        nakshatra = _validated_span(nakshatra, "nakshatra", local_instant, fallbacks)
        yoga = _validated_span(yoga, "yoga", local_instant, fallbacks)
        karana = _validated_span(karana, "karana", local_instant, fallbacks)

        astro_update = {}
        for field in ("sunrise", "sunset", "moonrise", "moonset"):
            if not _valid_moment(getattr(astro, field)):
                astro_update[field] = local_instant
                fallbacks.append(field)
        if astro_update:
            astro = astro.model_copy(update=astro_update)

        muhurtas = compute_muhurtas(astro.sunrise, astro.sunset)

        return DailyPanchang(
            date=day,
            location=location,
            tithi=tithi,
            nakshatra=nakshatra,
            yoga=yoga,
            karana=karana,
            astronomical_info=astro,
            muhurtas=muhurtas,
            festivals=festivals,
            fallbacks=sorted(set(fallbacks)),
        )
