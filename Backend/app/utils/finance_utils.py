import calendar
import zoneinfo
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple, Union

from app.core.config import get_settings

settings = get_settings()

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number]) -> Decimal:
    """Coerce a stored/received amount to Decimal without float artefacts."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def get_today() -> date:
    """Current date in the configured timezone."""
    return datetime.now(zoneinfo.ZoneInfo(settings.APP_TIMEZONE)).date()


def get_month_date_range(target_date: date) -> Dict[str, date]:
    _, last_day = calendar.monthrange(target_date.year, target_date.month)
    return {
        "month_start": date(target_date.year, target_date.month, 1),
        "month_end": date(target_date.year, target_date.month, last_day),
    }


def parse_month(value: str) -> date:
    """Parse a ``YYYY-MM`` month selector into the first day of that month."""
    try:
        year_str, month_str = value.split("-")
        return date(int(year_str), int(month_str), 1)
    except ValueError:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM") from None


def days_in_window(window_start: date, window_end: date) -> int:
    """Inclusive day count of [window_start, window_end], never below 1."""
    return max(1, (window_end - window_start).days + 1)


def resolve_window(
    month: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """
    Work out the reporting window from query parameters.

    An explicit start/end pair wins, then a month selector, then the
    current month. A lone start or end is anchored to its own month.
    """
    if start and end:
        return start, end

    if month:
        month_range = get_month_date_range(parse_month(month))
        return month_range["month_start"], month_range["month_end"]

    anchor = start or end or today or get_today()
    month_range = get_month_date_range(anchor)
    return start or month_range["month_start"], end or month_range["month_end"]
