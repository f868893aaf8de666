"""
Filter pipeline over transaction collections.

Each filter is a pure subsequence operation that keeps the input relative order,
so composition is order-independent in result. apply_filters runs them in the
fixed sequence date -> action type -> counterparty -> minimum amount.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Sequence

from near_ledger.core.exceptions import InvalidFilter
from near_ledger.core.units import NEAR_DECIMALS, parse_timestamp, to_minor_units
from near_ledger.indexer.models import Transaction, normalize_action_kind
from near_ledger.ledger_logging import get_logger

logger = get_logger(__name__)

_RELATIVE_RE = re.compile(r"^(\d+)([dhm])$", re.IGNORECASE)

# m is a 30-day month
RELATIVE_UNITS = {
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(days=30),
}

DateBound = str | date | datetime | None


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def parse_date_bound(
    value: DateBound,
    now: datetime | None = None,
    strict: bool = False,
) -> datetime | None:
    """
    Parse a date filter bound: absolute ISO date/time or relative "<n>d|h|m".

    Relative offsets are subtracted from now (evaluation instant), not from the
    data. Naive values are UTC. Malformed input returns None (no bound) unless
    strict is set, in which case InvalidFilter is raised.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    text = str(value).strip()
    if not text:
        return None

    match = _RELATIVE_RE.match(text)
    if match:
        amount = int(match.group(1))
        unit = RELATIVE_UNITS[match.group(2).lower()]
        reference = _as_utc(now) if now is not None else datetime.now(timezone.utc)
        return reference - amount * unit

    try:
        iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        return _as_utc(datetime.fromisoformat(iso))
    except ValueError:
        if strict:
            raise InvalidFilter(f"Invalid date filter: {text!r}")
        logger.warning("date_bound_ignored", value=text)
        return None


def filter_by_date_range(
    transactions: Iterable[Transaction],
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Transaction]:
    """Keep transactions with start <= time <= end; either bound optional."""
    out: list[Transaction] = []
    for tx in transactions:
        tx_time = parse_timestamp(tx.timestamp)
        if start is not None and tx_time < start:
            continue
        if end is not None and tx_time > end:
            continue
        out.append(tx)
    return out


def filter_by_action_type(
    transactions: Iterable[Transaction],
    action_types: str | Iterable[str],
) -> list[Transaction]:
    """Keep if any action kind is in action_types (comma string or list, any casing)."""
    if isinstance(action_types, str):
        action_types = action_types.split(",")
    wanted = {normalize_action_kind(t) for t in action_types if t and t.strip()}
    return [tx for tx in transactions if any(a.kind in wanted for a in tx.actions)]


def filter_by_counterparty(
    transactions: Iterable[Transaction],
    counterparty: str,
) -> list[Transaction]:
    return [
        tx for tx in transactions
        if tx.signer_id == counterparty or tx.receiver_id == counterparty
    ]


def filter_by_min_amount(
    transactions: Iterable[Transaction],
    min_amount: Any,
    decimals: int = NEAR_DECIMALS,
) -> list[Transaction]:
    """
    Keep if deposit >= min_amount. min_amount is in display units (NEAR) and
    is converted with floor(min_amount * 10^decimals); comparison is integer.
    """
    threshold = to_minor_units(min_amount, decimals)
    return [tx for tx in transactions if tx.deposit >= threshold]


@dataclass
class FilterCriteria:
    """User-facing filter inputs; every field optional."""

    from_date: DateBound = None
    to_date: DateBound = None
    action_types: str | Sequence[str] | None = None
    counterparty: str | None = None
    min_amount: Any = None
    strict_dates: bool = False

    def date_bounds(self, now: datetime | None = None) -> tuple[datetime | None, datetime | None]:
        return (
            parse_date_bound(self.from_date, now=now, strict=self.strict_dates),
            parse_date_bound(self.to_date, now=now, strict=self.strict_dates),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_date": str(self.from_date) if self.from_date is not None else None,
            "to_date": str(self.to_date) if self.to_date is not None else None,
            "action_types": self.action_types,
            "counterparty": self.counterparty,
            "min_amount": str(self.min_amount) if self.min_amount is not None else None,
        }


def apply_filters(
    transactions: Iterable[Transaction],
    criteria: FilterCriteria | None,
    now: datetime | None = None,
) -> list[Transaction]:
    """Run the configured filters in sequence (logical AND)."""
    result = list(transactions)
    if criteria is None:
        return result
    before = len(result)

    start, end = criteria.date_bounds(now)
    if start is not None or end is not None:
        result = filter_by_date_range(result, start, end)
    if criteria.action_types:
        result = filter_by_action_type(result, criteria.action_types)
    if criteria.counterparty:
        result = filter_by_counterparty(result, criteria.counterparty)
    if criteria.min_amount is not None:
        result = filter_by_min_amount(result, criteria.min_amount)

    logger.debug("filters_applied", before=before, after=len(result), criteria=criteria.to_dict())
    return result
