"""Festival rules.

Two kinds of rule produce festival records for a day: tithi-number
triggers and fixed Gregorian month/day ranges. The Gregorian ranges only
approximate festivals whose true dates follow the lunar calendar.
"""

from __future__ import annotations

from datetime import date as date_cls
from typing import Dict, Iterable, List, Optional

from ..schemas.panchang import Festival, Nakshatra, Tithi


TITHI_RULES: List[Dict[str, object]] = [
    {
        "name": "Purnima",
        "tithis": {15},
        "description": "Full Moon Day",
        "significance": "Considered auspicious for spiritual practices and ceremonies",
    },
    {
        "name": "Amavasya",
        "tithis": {30, 1},
        "description": "New Moon Day",
        "significance": "Day of new beginnings and ancestral offerings",
    },
    {
        "name": "Ekadashi",
        "tithis": {11, 26},
        "description": "Eleventh lunar day of each fortnight",
        "significance": "Observed with fasting and devotion to Lord Vishnu",
    },
    {
        "name": "Sankashti Chaturthi",
        "tithis": {19},
        "description": "Fourth lunar day of the waning fortnight",
        "significance": "Fast dedicated to Lord Ganesha, broken after moonrise",
    },
]

DATE_RULES: List[Dict[str, object]] = [
    {
        "name": "Holi",
        "month": 3,
        "days": {22},
        "description": "Festival of Colors",
        "significance": "Celebrates the victory of good over evil and the arrival of spring",
    },
    {
        "name": "Diwali",
        "month": 10,
        "days": {19, 20, 21, 22, 23},
        "description": "Festival of Lights",
        "significance": "Celebrates the victory of light over darkness",
    },
    {
        "name": "Janmashtami",
        "month": 8,
        "days": {30, 31},
        "description": "Birth of Lord Krishna",
        "significance": "Celebrates the birth of Lord Krishna",
    },
    {
        "name": "Ganesh Chaturthi",
        "month": 9,
        "days": set(range(1, 11)),
        "description": "Festival dedicated to Lord Ganesha",
        "significance": "Celebrates the birth of Lord Ganesha",
    },
]


def festivals_for_date(
    day: date_cls,
    tithi: Tithi,
    nakshatra: Optional[Nakshatra] = None,
) -> List[Festival]:
    """Return the festivals triggered by ``day`` and its tithi.

    ``nakshatra`` is accepted so nakshatra-triggered rules can be added
    alongside the existing ones; none are defined yet.
    """

    results: List[Festival] = []

    for rule in TITHI_RULES:
        if tithi.number in rule["tithis"]:
            results.append(
                Festival(
                    name=rule["name"],
                    type="tithi",
                    date=day,
                    description=rule["description"],
                    significance=rule["significance"],
                )
            )

    for rule in DATE_RULES:
        if rule["month"] == day.month and day.day in rule["days"]:
            results.append(
                Festival(
                    name=rule["name"],
                    type="major",
                    date=day,
                    description=rule["description"],
                    significance=rule["significance"],
                )
            )

    return results


def merge_festivals(*groups: Iterable[Festival]) -> List[Festival]:
    """Concatenate festival lists, dropping repeats of the same (name, date)."""

    merged: List[Festival] = []
    seen = set()
    for group in groups:
        for entry in group:
            key = (entry.name, entry.date)
            if key in seen:
                continue
            seen.add(key)
            merged.append(entry)
    return merged
