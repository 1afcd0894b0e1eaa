from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def to_text(value: Any) -> Optional[str]:
    """Stringify a field value for search / categorical matching. None stays None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return str(value)


def to_number(value: Any) -> Optional[float]:
    """
    Numeric view of a field value. Strings are stripped of currency symbols and
    thousands separators first ("$1,200.50" -> 1200.5). Unusable values -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return None if math.isnan(number) else number


def to_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """
    Parse a field value into a UTC pandas Timestamp.

    - naive datetimes / ISO strings without offset are treated as UTC
    - ints / floats are epoch milliseconds
    - anything unparseable -> None
    """
    if value is None or isinstance(value, (bool, list, tuple, set, dict)) or value == "":
        return None
    try:
        if isinstance(value, (int, float)):
            if math.isnan(value):
                return None
            parsed = pd.to_datetime(value, unit="ms", utc=True)
        else:
            parsed = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed


def parse_bound(value: Any) -> Optional[date]:
    """
    Normalise a persisted/user supplied date bound. ISO date strings become
    `date`, ISO datetime strings become `datetime`. Invalid input -> None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def bound_start(bound: date) -> pd.Timestamp:
    """Lower date-range bound: a calendar date covers its whole day from 00:00."""
    if isinstance(bound, datetime):
        return pd.Timestamp(bound).tz_localize("UTC") if bound.tzinfo is None else pd.Timestamp(bound).tz_convert("UTC")
    return pd.Timestamp(bound).tz_localize("UTC")


def bound_end(bound: date) -> pd.Timestamp:
    """Upper date-range bound: a calendar date covers its whole day up to 23:59:59.999999999."""
    if isinstance(bound, datetime):
        return bound_start(bound)
    return bound_start(bound) + pd.Timedelta(days=1) - pd.Timedelta(1, unit="ns")
