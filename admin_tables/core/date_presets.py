from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Optional, Tuple

DATE_PRESETS = ("today", "week", "month", "last30")


def date_preset(preset: str, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Inclusive (start, end) calendar range for a quick-filter preset.

    - today: today only
    - week: Sunday..Saturday of the current week
    - month: first..last day of the current month
    - last30: the 30 days before today, through today
    """
    today = today or date.today()
    if preset == "today":
        return today, today
    if preset == "week":
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if preset == "month":
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)
    if preset == "last30":
        return today - timedelta(days=30), today
    raise ValueError(f"Unknown date preset '{preset}' (expected one of {DATE_PRESETS})")
