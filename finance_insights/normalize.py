"""Coercion of raw field values into canonical amounts, dates and periods."""
import math
from datetime import date, datetime
from typing import Any, Optional

# Month tokens accepted for payroll periods, matched case-insensitively
MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]
MONTH_ABBRS = [name[:3] for name in MONTH_NAMES]

_DATE_FORMATS = ["%Y-%m-%d", "%m/%d/%Y", "%Y%m%d"]


def normalize(value: Any) -> float:
    """Coerce any raw field value into a canonical amount.

    None, empty strings, booleans, unparsable text, NaN and infinities all
    become 0.0. Negative numbers pass through unchanged.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            text = str(value).strip()
            if not text:
                return 0.0
            number = float(text)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_half_up(value: float) -> float:
    """Round to the nearest whole unit, halves rounding up."""
    return float(math.floor(value + 0.5))


def parse_date(value: Any) -> Optional[date]:
    """Parse a record date into a calendar date.

    Handles date/datetime objects, ISO-8601 timestamps (the form the payment
    API serializes, including a trailing "Z"), YYYY-MM-DD, MM/DD/YYYY and
    YYYYMMDD. Returns None when nothing matches.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_month(value: Any) -> Optional[int]:
    """Parse a payroll month ("January", "Jan", "1", "01", 1) into 1-12."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not value.is_integer():
            return None
        month = int(value)
        return month if 1 <= month <= 12 else None
    text = str(value).strip().lower()
    if not text:
        return None
    if text.isdigit():
        month = int(text)
        return month if 1 <= month <= 12 else None
    if text in MONTH_NAMES:
        return MONTH_NAMES.index(text) + 1
    if text[:3] in MONTH_ABBRS and MONTH_NAMES[MONTH_ABBRS.index(text[:3])].startswith(text):
        return MONTH_ABBRS.index(text[:3]) + 1
    return None


def parse_year(value: Any) -> Optional[int]:
    """Parse a four-digit calendar year, returning None when invalid."""
    number = normalize(value)
    if number <= 0 or not number.is_integer():
        return None
    year = int(number)
    return year if 1000 <= year <= 9999 else None


def period_key(year: int, month: int) -> str:
    """Build the YYYY-MM key that identifies a calendar month."""
    return f"{year:04d}-{month:02d}"


def split_period_key(key: str) -> tuple[int, int]:
    """Inverse of period_key()."""
    year, month = key.split("-")
    return int(year), int(month)


def period_label(year: int, month: int) -> str:
    """Short display label for a period, e.g. "Mar 2024"."""
    return f"{MONTH_ABBRS[month - 1].title()} {year}"


def text_or(value: Any, default: str) -> str:
    """Return a stripped string value, or default when missing or blank."""
    if value is None:
        return default
    text = str(value).strip()
    return text or default
