"""Panchang API endpoints."""

from __future__ import annotations

import logging
import os
import time
from datetime import date as date_cls, datetime
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import ValidationError

from ..schemas.panchang import (
    DailyPanchang,
    DailyPanchangRequest,
    Festival,
    Location,
    MonthlyPanchang,
)
from ..services.orchestrators.panchang_daily import PanchangError, PanchangService
from ..services.util.place_defaults import normalize_place


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/panchang", tags=["panchang"])

CACHE: Dict[str, tuple[float, Any]] = {}


def _cache_ttl() -> int:
    return int(os.getenv("PANCHANG_CACHE_TTL_SECONDS", "300"))


@lru_cache(maxsize=1)
def get_panchang_service() -> PanchangService:
    return PanchangService()


async def _cached(key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
    now = time.time()
    hit = CACHE.get(key)
    if hit and hit[0] > now:
        return hit[1]
    for stale in [k for k, (expires, _) in CACHE.items() if expires <= now]:
        CACHE.pop(stale, None)
    try:
        value = await compute()
    except PanchangError as exc:
        raise HTTPException(status_code=500, detail=f"Error loading Panchang data: {exc}") from exc
    ttl = _cache_ttl()
    if ttl > 0:
        CACHE[key] = (now + ttl, value)
    return value


def _resolve_location(place: Optional[Dict[str, Any]]) -> Location:
    try:
        location, flags = normalize_place(place)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors(include_url=False, include_context=False)) from exc
    if flags["default_reason"]:
        logger.info(
            "panchang.place.defaults",
            extra={
                "reason": flags["default_reason"],
                "lat": location.latitude,
                "lon": location.longitude,
                "tz": location.timezone,
            },
        )
    return location


def _place_from_query(
    lat: Optional[float], lon: Optional[float], tz: Optional[str], name: Optional[str]
) -> Optional[Dict[str, Any]]:
    payload: Dict[str, Any] = {}
    if lat is not None:
        payload["lat"] = lat
    if lon is not None:
        payload["lon"] = lon
    if tz:
        payload["tz"] = tz
    if name:
        payload["name"] = name
    return payload or None


def _location_key(location: Location) -> str:
    return f"{location.latitude:.4f}:{location.longitude:.4f}:{location.timezone}"


async def _daily(service: PanchangService, day: date_cls, location: Location) -> DailyPanchang:
    key = f"daily:{day.isoformat()}:{_location_key(location)}:{service.cache_token}"
    return await _cached(key, lambda: service.calculate_daily_panchang(day, location))


async def _monthly(
    service: PanchangService, year: int, month: int, location: Location
) -> MonthlyPanchang:
    key = f"month:{year:04d}-{month:02d}:{_location_key(location)}:{service.cache_token}"
    return await _cached(key, lambda: service.calculate_month(year, month, location))


@router.post(
    "/daily",
    response_model=DailyPanchang,
    summary="Compute the Panchang for a date and location",
)
async def panchang_daily(
    req: DailyPanchangRequest = Body(
        ...,
        examples=[
            {
                "date": "2024-03-07",
                "place": {
                    "lat": 28.6139,
                    "lon": 77.2090,
                    "tz": "Asia/Kolkata",
                    "name": "New Delhi",
                },
            }
        ],
    ),
    service: PanchangService = Depends(get_panchang_service),
):
    place = req.place.model_dump(exclude_none=True) if req.place else None
    location = _resolve_location(place)
    day = req.date or datetime.now(location.tzinfo).date()
    return await _daily(service, day, location)


@router.get(
    "/today",
    response_model=DailyPanchang,
    summary="Convenience endpoint for today's Panchang",
)
async def panchang_today(
    lat: Optional[float] = Query(None, ge=-90.0, le=90.0, description="Latitude"),
    lon: Optional[float] = Query(None, ge=-180.0, le=180.0, description="Longitude"),
    tz: Optional[str] = Query(None, description="IANA timezone"),
    name: Optional[str] = Query(None, description="Optional place label"),
    service: PanchangService = Depends(get_panchang_service),
):
    location = _resolve_location(_place_from_query(lat, lon, tz, name))
    today = datetime.now(location.tzinfo).date()
    return await _daily(service, today, location)


@router.get(
    "/month",
    response_model=MonthlyPanchang,
    summary="Panchang for every day of a calendar month",
)
async def panchang_month(
    year: Optional[int] = Query(None, ge=1, le=9999, description="Year (YYYY)"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Month (1-12)"),
    lat: Optional[float] = Query(None, ge=-90.0, le=90.0, description="Latitude"),
    lon: Optional[float] = Query(None, ge=-180.0, le=180.0, description="Longitude"),
    tz: Optional[str] = Query(None, description="IANA timezone"),
    name: Optional[str] = Query(None, description="Optional place label"),
    service: PanchangService = Depends(get_panchang_service),
):
    location = _resolve_location(_place_from_query(lat, lon, tz, name))
    today = datetime.now(location.tzinfo).date()
    return await _monthly(service, year or today.year, month or today.month, location)


@router.get(
    "/festivals",
    response_model=List[Festival],
    summary="Festivals falling within a calendar month",
)
async def panchang_festivals(
    year: Optional[int] = Query(None, ge=1, le=9999, description="Year (YYYY)"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Month (1-12)"),
    lat: Optional[float] = Query(None, ge=-90.0, le=90.0, description="Latitude"),
    lon: Optional[float] = Query(None, ge=-180.0, le=180.0, description="Longitude"),
    tz: Optional[str] = Query(None, description="IANA timezone"),
    name: Optional[str] = Query(None, description="Optional place label"),
    service: PanchangService = Depends(get_panchang_service),
):
    location = _resolve_location(_place_from_query(lat, lon, tz, name))
    today = datetime.now(location.tzinfo).date()
    monthly = await _monthly(service, year or today.year, month or today.month, location)
    return monthly.festivals
