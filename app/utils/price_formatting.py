from babel.core import UnknownLocaleError
from babel.numbers import UnknownCurrencyError, format_currency as babel_format_currency, validate_currency
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import logging
import re

logger = logging.getLogger(__name__)

# Display helpers only. Amounts are integers in minor units (cents); nothing here feeds back into a Stripe call.


def _to_major_units(amount: int) -> Decimal:
    return Decimal(amount) / 100


def _fallback(amount: int, currency: str) -> str:
    return f"{currency.upper()} {_to_major_units(amount):.2f}"


def format_currency(amount: int, currency: str = "usd", locale: str = "en-US", **options) -> str:
    """
    Format a minor-unit amount as a locale currency string, e.g. 2999 -> "$29.99".
    Extra keyword options go straight to babel (format, currency_digits, format_type, ...).
    Never raises: an unknown currency or locale falls back to "<CODE> <amount>".
    """
    code = currency.upper()
    babel_locale = locale.replace("-", "_")
    try:
        validate_currency(code, babel_locale)
        return babel_format_currency(_to_major_units(amount), code, locale=babel_locale, **options)
    except (UnknownCurrencyError, UnknownLocaleError, ValueError, TypeError) as e:
        logger.warning(f"Falling back to plain price format for {code}/{locale}: {str(e)}")
        return _fallback(amount, currency)


def format_price(amount: int, currency: str = "usd", locale: str = "en-US") -> str:
    return format_currency(amount, currency, locale)


def format_price_with_interval(amount: int, interval: str, currency: str = "usd", locale: str = "en-US") -> str:
    return f"{format_price(amount, currency, locale)}/{interval}"


def parse_price_from_string(price_string: str) -> int:
    """Parse a display price such as "$29.99" back into minor units (2999)"""
    cleaned = re.sub(r"[^0-9.\-]+", "", price_string)
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"No price found in {price_string!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
