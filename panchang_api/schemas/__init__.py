from .panchang import (
    AstronomicalInfo,
    DailyPanchang,
    DailyPanchangRequest,
    Festival,
    Karana,
    Location,
    MonthlyPanchang,
    Muhurta,
    Nakshatra,
    PanchangPlace,
    Span,
    Tithi,
    Yoga,
)
