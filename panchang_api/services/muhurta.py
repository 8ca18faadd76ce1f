"""Daylight muhurta table.

The interval from sunrise to sunset is divided into thirty equal
muhurtas. Names cycle through a fixed table; each slot is tagged from two
fixed index sets.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

from ..schemas.panchang import Muhurta
from .panchang_algos import shift

MUHURTA_COUNT = 30

MUHURTA_NAMES = [
    "Rudra",
    "Ahi",
    "Mitra",
    "Pitri",
    "Vasu",
    "Vara",
    "Vishvadeva",
    "Vidhi",
    "Satamukhi",
    "Puruhuta",
    "Vahini",
    "Naktanakara",
    "Varuna",
    "Aryaman",
    "Bhaga",
    "Girisha",
    "Ajapada",
    "Ahir-Budhnya",
    "Pushan",
    "Ashvini",
    "Yama",
    "Agni",
    "Vidhatri",
    "Kanda",
    "Aditi",
    "Jiva",
    "Vishnu",
    "Dyumani",
    "Brahma",
    "Samudra",
]

AUSPICIOUS_INDICES = frozenset({0, 1, 4, 6, 8, 10, 13, 15, 20, 22, 25, 27})
INAUSPICIOUS_INDICES = frozenset({3, 7, 11, 14, 18, 21, 24, 28})

MUHURTA_DESCRIPTIONS = {
    "Rudra": "Sacred time dedicated to Lord Shiva",
    "Ahi": "Time for healing and rejuvenation",
    "Mitra": "Auspicious for forming friendships and alliances",
    "Pitri": "Time for ancestral offerings",
    "Vasu": "Good for material prosperity",
}
DEFAULT_DESCRIPTION = "Regular muhurta period"


def muhurta_name(index: int) -> str:
    return MUHURTA_NAMES[index % len(MUHURTA_NAMES)]


def muhurta_type(index: int) -> str:
    if index in AUSPICIOUS_INDICES:
        return "auspicious"
    if index in INAUSPICIOUS_INDICES:
        return "inauspicious"
    return "neutral"


def muhurta_description(index: int) -> str:
    return MUHURTA_DESCRIPTIONS.get(muhurta_name(index), DEFAULT_DESCRIPTION)


def compute_muhurtas(sunrise: datetime, sunset: datetime) -> List[Muhurta]:
    """Return the thirty muhurtas spanning ``sunrise`` to ``sunset``."""

    day_length = sunset - sunrise
    if day_length <= timedelta(0):
        # Inverted or empty day (defaulted rise/set); assume twelve hours.
        day_length = timedelta(hours=12)
    # Clipped when the day runs past the end of the datetime range.
    day_length = shift(sunrise, day_length) - sunrise
    seg = day_length / MUHURTA_COUNT

    muhurtas: List[Muhurta] = []
    for i in range(MUHURTA_COUNT):
        start = sunrise + seg * i
        end = sunrise + day_length if i == MUHURTA_COUNT - 1 else sunrise + seg * (i + 1)
        muhurtas.append(
            Muhurta(
                name=muhurta_name(i),
                type=muhurta_type(i),
                description=muhurta_description(i),
                start_time=start,
                end_time=end,
            )
        )
    return muhurtas
