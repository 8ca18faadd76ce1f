"""Panchang value objects shared by the services and the API endpoints."""

from __future__ import annotations

import math
from datetime import date as date_cls, datetime
from typing import List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Location(_Frozen):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    timezone: str = "UTC"
    name: str = ""

    @field_validator("latitude", "longitude")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinates must be finite numbers")
        return value

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Invalid timezone: {value}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class Span(_Frozen):
    start_time: datetime
    end_time: datetime


class Tithi(Span):
    number: int = Field(ge=1, le=30)
    name: str
    paksha: Literal["Shukla", "Krishna"]


class Nakshatra(Span):
    number: int = Field(ge=1, le=27)
    name: str
    ruler: str
    deity: str


class Yoga(Span):
    number: int = Field(ge=1, le=27)
    name: str


class Karana(Span):
    number: int = Field(ge=1, le=8)
    half_tithi: int = Field(ge=1, le=60)
    name: str


class AstronomicalInfo(_Frozen):
    sunrise: datetime
    sunset: datetime
    moonrise: datetime
    moonset: datetime
    lunar_phase: float = Field(ge=0.0, le=1.0)


FestivalType = Literal["major", "tithi", "nakshatra", "minor"]
MuhurtaType = Literal["auspicious", "inauspicious", "neutral"]


class Festival(_Frozen):
    name: str
    type: FestivalType
    date: date_cls
    description: str
    significance: str


class Muhurta(Span):
    name: str
    type: MuhurtaType
    description: str


class DailyPanchang(_Frozen):
    date: date_cls
    location: Location
    tithi: Tithi
    nakshatra: Nakshatra
    yoga: Yoga
    karana: Karana
    astronomical_info: AstronomicalInfo
    muhurtas: List[Muhurta]
    festivals: List[Festival] = Field(default_factory=list)
    fallbacks: List[str] = Field(
        default_factory=list,
        description="Fields holding default values instead of computed ones",
    )


class MonthlyPanchang(_Frozen):
    year: int
    month: int = Field(ge=1, le=12)
    location: Location
    days: List[DailyPanchang]
    festivals: List[Festival] = Field(default_factory=list)


class PanchangPlace(BaseModel):
    lat: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    lon: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    tz: Optional[str] = None
    name: Optional[str] = None


class DailyPanchangRequest(BaseModel):
    date: Optional[date_cls] = None
    place: Optional[PanchangPlace] = None
