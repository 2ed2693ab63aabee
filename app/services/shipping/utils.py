"""
Helpers for delivery estimates and postal codes.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

SATURDAY = 5
SUNDAY = 6


def _is_weekend(d: date) -> bool:
    return d.weekday() in (SATURDAY, SUNDAY)


def calculate_delivery_date(
    business_days: int,
    start_date: Optional[Union[date, datetime]] = None,
) -> date:
    """
    Estimated delivery date counting business days only.

    A weekend start date rolls forward to Monday before counting.

    Examples:
        Friday + 1 -> Monday
        Saturday + 1 -> Tuesday
    """
    if start_date is None:
        start_date = date.today()
    if isinstance(start_date, datetime):
        start_date = start_date.date()

    result = start_date
    while _is_weekend(result):
        result += timedelta(days=1)

    days_to_add = business_days
    while days_to_add > 0:
        result += timedelta(days=1)
        if not _is_weekend(result):
            days_to_add -= 1

    return result


def format_delivery_date(d: date) -> str:
    """dd/mm/yyyy"""
    return d.strftime("%d/%m/%Y")


def normalize_postal_code(value: Optional[str]) -> str:
    """Strip everything but digits"""
    return re.sub(r"\D", "", value or "")


def add_delivery_estimates(options, start_date: Optional[Union[date, datetime]] = None) -> list:
    """
    Copies of the options with estimated_delivery_date filled from their
    delivery_time. Options without a delivery_time are left without one.
    """
    start_date = start_date or date.today()
    estimated = []
    for option in options:
        if option.delivery_time is None:
            estimated.append(option.model_copy())
            continue
        delivery_date = calculate_delivery_date(option.delivery_time, start_date)
        estimated.append(option.model_copy(update={"estimated_delivery_date": format_delivery_date(delivery_date)}))
    return estimated
