# tests/unit/services/shipping/test_delivery_utils.py
from datetime import date, datetime

import pytest

from app.services.shipping.utils import (
    add_delivery_estimates,
    calculate_delivery_date,
    format_delivery_date,
    normalize_postal_code,
)

FRIDAY = date(2026, 10, 16)
SATURDAY = date(2026, 10, 17)
WEDNESDAY = date(2026, 10, 14)


@pytest.mark.parametrize("start, days, expected", [
    (FRIDAY, 1, date(2026, 10, 19)),
    (SATURDAY, 1, date(2026, 10, 20)),
    (WEDNESDAY, 2, date(2026, 10, 16)),
    (WEDNESDAY, 5, date(2026, 10, 21)),
    (SATURDAY, 0, date(2026, 10, 19)),
])
def test_calculate_delivery_date_skips_weekends(start, days, expected):
    assert calculate_delivery_date(days, start) == expected


def test_calculate_delivery_date_accepts_datetime():
    assert calculate_delivery_date(1, datetime(2026, 10, 16, 18, 30)) == date(2026, 10, 19)


def test_format_delivery_date():
    assert format_delivery_date(date(2026, 3, 5)) == "05/03/2026"


@pytest.mark.parametrize("raw, expected", [
    ("01310-100", "01310100"),
    (" 16.010-000 ", "16010000"),
    (None, ""),
])
def test_normalize_postal_code(raw, expected):
    assert normalize_postal_code(raw) == expected


def test_add_delivery_estimates(make_option):
    options = [make_option(1, "30.00", delivery_time=1), make_option(2, "25.00", delivery_time=None)]

    estimated = add_delivery_estimates(options, FRIDAY)

    assert estimated[0].estimated_delivery_date == "19/10/2026"
    assert estimated[1].estimated_delivery_date is None
    assert options[0].estimated_delivery_date is None
