"""Billing period identifiers ("YYYY-MM")."""

import re
from datetime import date

from condocalc.services.errors import InvalidPeriodError

PERIOD_PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})")


def validate_period(period: str) -> str:
    """Return period unchanged if it is a valid YYYY-MM identifier.

    Raises:
        InvalidPeriodError: If format or month is invalid
    """
    match = PERIOD_PATTERN.fullmatch(period or "")
    if not match:
        raise InvalidPeriodError(f"Invalid period '{period}': expected YYYY-MM")
    month = int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Invalid period '{period}': month must be 01-12")
    return period


def current_period(today: date | None = None) -> str:
    today = today or date.today()
    return f"{today.year}-{today.month:02d}"


def previous_period(period: str) -> str:
    """Period immediately before the given one (2025-01 -> 2024-12)."""
    validate_period(period)
    year, month = (int(part) for part in period.split("-"))
    month -= 1
    if month == 0:
        month = 12
        year -= 1
    return f"{year}-{month:02d}"
