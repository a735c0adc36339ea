from datetime import date
from decimal import Decimal

import pytest

from app.utils.finance_utils import (
    days_in_window,
    get_month_date_range,
    parse_month,
    resolve_window,
    to_decimal,
)


def test_to_decimal_avoids_float_artefacts():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("12.50") == Decimal("12.50")


def test_month_range_handles_leap_february():
    month_range = get_month_date_range(date(2024, 2, 14))
    assert month_range["month_start"] == date(2024, 2, 1)
    assert month_range["month_end"] == date(2024, 2, 29)


def test_parse_month():
    assert parse_month("2026-03") == date(2026, 3, 1)


@pytest.mark.parametrize("value", ["2026-13", "2026/01", "march", ""])
def test_parse_month_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_month(value)


def test_parse_month_error_hides_inner_failure():
    with pytest.raises(ValueError) as exc_info:
        parse_month("2026-13")

    assert str(exc_info.value) == "Invalid month '2026-13', expected YYYY-MM"
    assert exc_info.value.__cause__ is None
    assert exc_info.value.__suppress_context__ is True


def test_days_in_window_is_inclusive():
    assert days_in_window(date(2026, 1, 1), date(2026, 1, 31)) == 31
    assert days_in_window(date(2026, 1, 5), date(2026, 1, 5)) == 1


def test_resolve_window_precedence():
    today = date(2026, 4, 18)

    assert resolve_window(today=today) == (date(2026, 4, 1), date(2026, 4, 30))
    assert resolve_window(month="2026-02", today=today) == (date(2026, 2, 1), date(2026, 2, 28))
    assert resolve_window(
        month="2026-02", start=date(2026, 1, 3), end=date(2026, 1, 9)
    ) == (date(2026, 1, 3), date(2026, 1, 9))
    assert resolve_window(start=date(2026, 6, 10), today=today) == (date(2026, 6, 10), date(2026, 6, 30))
