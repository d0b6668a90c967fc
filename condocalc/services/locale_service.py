"""Locale service for currency and number formatting.

Uses babel. The calculator bills in a single currency (BRL); LOCALE only
changes separators and symbol placement.

Configuration:
    LOCALE env var (default: pt_BR)

Example:
    >>> from condocalc.services.locale_service import format_amount
    >>> format_amount(1234.56)
    'R$ 1.234,56'
"""

import logging
import os
from decimal import Decimal

from babel import Locale, UnknownLocaleError
from babel.numbers import format_currency as babel_format_currency
from babel.numbers import format_decimal as babel_format_decimal

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "pt_BR"
CURRENCY = "BRL"


def _get_locale() -> str:
    """Get locale from environment with validation and fallback."""
    locale_str = os.getenv("LOCALE", DEFAULT_LOCALE)
    try:
        Locale.parse(locale_str)
        return locale_str
    except (UnknownLocaleError, ValueError) as e:
        logger.warning(f"Invalid LOCALE '{locale_str}': {e}. Falling back to '{DEFAULT_LOCALE}'")
        return DEFAULT_LOCALE


LOCALE = _get_locale()


def format_amount(amount: float | Decimal, include_symbol: bool = True) -> str:
    """Format monetary amount according to locale.

    Args:
        amount: Numeric amount to format
        include_symbol: Whether to include currency symbol (default True)

    Returns:
        Formatted currency string (e.g., 'R$ 1.234,56')
    """
    if include_symbol:
        return babel_format_currency(Decimal(str(amount)), CURRENCY, locale=LOCALE)
    return babel_format_decimal(
        Decimal(str(amount)), format="#,##0.00", locale=LOCALE
    )


def format_volume(volume: float | Decimal) -> str:
    """Format a volume in cubic meters (e.g., '12,5 m³')."""
    return f"{babel_format_decimal(Decimal(str(volume)), locale=LOCALE)} m³"
