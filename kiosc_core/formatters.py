from __future__ import annotations

import logging
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {
    "AUD": "A$",
    "USD": "$",
    "NZD": "NZ$",
    "CAD": "CA$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}
ZERO_DECIMAL_CURRENCIES = {"JPY"}

# date-fns style tokens -> strftime; longest first.
DATE_TOKENS = [
    ("yyyy", "%Y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("dd", "%d"),
    ("yy", "%y"),
    ("HH", "%H"),
    ("mm", "%M"),
    ("ss", "%S"),
]
_TOKEN_RE = re.compile("|".join(tok for tok, _ in DATE_TOKENS))


def _blank(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def round_half_up(value: float, ndigits: int = 0) -> float:
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def to_strftime(pattern: str) -> str:
    lookup = dict(DATE_TOKENS)
    return _TOKEN_RE.sub(lambda m: lookup[m.group(0)], pattern)


def format_date(value: Union[str, date, datetime, None], pattern: str = "dd/MM/yyyy") -> str:
    """Format a date (or ISO string) with a date-fns style pattern such as ``dd/MM/yyyy``."""
    if _blank(value) or value == "":
        return ""
    try:
        parsed = pd.Timestamp(value) if isinstance(value, str) else value
        if pd.isna(parsed):
            return str(value)
        return parsed.strftime(to_strftime(pattern))
    except (ValueError, TypeError):
        logger.warning("Could not format date %r", value)
        return str(value)


def format_currency(amount: Optional[float], currency: str = "AUD") -> str:
    if _blank(amount):
        return ""
    code = (currency or "AUD").upper()
    decimals = 0 if code in ZERO_DECIMAL_CURRENCIES else 2
    value = round_half_up(float(amount), decimals)
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{code} {value:,.{decimals}f}"
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"


def format_number(value: Optional[float], decimal_places: int = 2) -> str:
    if _blank(value):
        return ""
    return f"{round_half_up(float(value), decimal_places):,.{decimal_places}f}"


def format_percentage(value: Optional[float], decimal_places: int = 1) -> str:
    """``0.15 -> "15.0%"``."""
    if _blank(value):
        return ""
    return f"{round_half_up(float(value) * 100, decimal_places):,.{decimal_places}f}%"


def display_amounts(
    values: Dict[str, float],
    currency: str = "AUD",
    percent_keys: Iterable[str] = (),
) -> Dict[str, str]:
    """Currency labels for a summary dict; keys in ``percent_keys`` are fractions."""
    percent = set(percent_keys)
    return {
        key: format_percentage(value) if key in percent else format_currency(value, currency)
        for key, value in values.items()
    }


def with_display(record: dict, currency: str = "AUD", date_pattern: str = "dd/MM/yyyy") -> dict:
    """Add ``date_display``/``amount_display`` labels to a transaction record."""
    return {
        **record,
        "date_display": format_date(record.get("date"), date_pattern),
        "amount_display": format_currency(record.get("amount"), currency),
    }
