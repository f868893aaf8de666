"""
Amount and time codec for NEAR ledger values.

Amounts are integers in yoctoNEAR (1 NEAR = 10^24 yocto); display strings always
carry 6 fractional digits. Timestamps are nanoseconds since epoch and are
floored to milliseconds before conversion. All amount math is integer/Decimal,
never float.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Any

from near_ledger.core.exceptions import ParseError

NEAR_DECIMALS = 24
DISPLAY_DIGITS = 6
NS_PER_MS = 1_000_000
MS_PER_DAY = 24 * 60 * 60 * 1000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INT_RE = re.compile(r"^[+-]?\d+$")


def _decimal_to_int(value: Decimal, raw: Any) -> int:
    if not value.is_finite() or value != value.to_integral_value():
        raise ParseError(f"Not an integer amount: {raw!r}")
    return int(value)


def parse_minor_units(value: Any) -> int:
    """
    Coerce an indexer amount (int, digit string, integral float/Decimal) to int.

    None and "" mean zero. Anything else that is not an exact integer raises ParseError.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ParseError(f"Not an amount: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        return _decimal_to_int(value, value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ParseError(f"Not a finite amount: {value!r}")
        # repr keeps the shortest exact form (e.g. 1e+24)
        return _decimal_to_int(Decimal(repr(value)), value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if _INT_RE.match(text):
            return int(text)
        try:
            return _decimal_to_int(Decimal(text), value)
        except InvalidOperation as e:
            raise ParseError(f"Malformed amount: {value!r}") from e
    raise ParseError(f"Unsupported amount type: {type(value).__name__}")


def to_display_amount(minor_units: Any, decimals: int = NEAR_DECIMALS) -> str:
    """
    Divide by 10^decimals and render with exactly 6 fractional digits.

    Rounds half away from zero at the 6th digit. Works for values beyond 64 bits.
    """
    value = parse_minor_units(minor_units)
    if decimals < 0:
        raise ParseError(f"decimals must be >= 0, got {decimals}")
    divisor = 10**decimals
    quotient, remainder = divmod(abs(value) * 10**DISPLAY_DIGITS, divisor)
    if remainder * 2 >= divisor:
        quotient += 1
    whole, frac = divmod(quotient, 10**DISPLAY_DIGITS)
    sign = "-" if value < 0 and quotient else ""
    return f"{sign}{whole}.{frac:0{DISPLAY_DIGITS}d}"


def to_minor_units(display_amount: Any, decimals: int = NEAR_DECIMALS) -> int:
    """Display units to minor units: multiply by 10^decimals and floor."""
    if isinstance(display_amount, bool):
        raise ParseError(f"Not an amount: {display_amount!r}")
    try:
        if isinstance(display_amount, Decimal):
            amount = display_amount
        else:
            amount = Decimal(str(display_amount).strip())
    except InvalidOperation as e:
        raise ParseError(f"Malformed amount: {display_amount!r}") from e
    if not amount.is_finite():
        raise ParseError(f"Not a finite amount: {display_amount!r}")
    return int((amount * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_FLOOR))


def timestamp_to_ms(nano_timestamp: Any) -> int:
    """Nanoseconds (int or digit string) floored to milliseconds."""
    if isinstance(nano_timestamp, bool) or nano_timestamp is None:
        raise ParseError(f"Malformed timestamp: {nano_timestamp!r}")
    if isinstance(nano_timestamp, int):
        ns = nano_timestamp
    else:
        text = str(nano_timestamp).strip()
        if not _INT_RE.match(text):
            raise ParseError(f"Malformed timestamp: {nano_timestamp!r}")
        ns = int(text)
    return ns // NS_PER_MS


def parse_timestamp(nano_timestamp: Any) -> datetime:
    """Nanosecond timestamp to an aware UTC datetime (millisecond precision)."""
    return _EPOCH + timedelta(milliseconds=timestamp_to_ms(nano_timestamp))


def format_iso(dt: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix, e.g. 2024-01-31T12:00:00.000Z."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_calendar_time(nano_timestamp: Any) -> str:
    return format_iso(parse_timestamp(nano_timestamp))


def to_calendar_date(nano_timestamp: Any) -> str:
    return to_calendar_time(nano_timestamp).split("T")[0]
