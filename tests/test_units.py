"""
Tests for the amount/time codec (near_ledger.core.units).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from near_ledger.core.exceptions import ParseError
from near_ledger.core.units import (
    parse_minor_units,
    parse_timestamp,
    to_calendar_date,
    to_calendar_time,
    to_display_amount,
    to_minor_units,
)

YOCTO = 10**24


def test_display_amount_basic():
    assert to_display_amount(0) == "0.000000"
    assert to_display_amount(YOCTO) == "1.000000"
    assert to_display_amount(2 * YOCTO) == "2.000000"
    assert to_display_amount(10_000_000_000_000_000_000) == "0.000010"


def test_display_amount_beyond_64_bits():
    """10^30 + 10^18 yocto = 1,000,000.000001 NEAR; no float precision loss."""
    assert to_display_amount(10**30 + 10**18) == "1000000.000001"
    assert to_display_amount(str(123_456_789_123 * YOCTO)) == "123456789123.000000"


def test_display_amount_rounds_at_sixth_digit():
    assert to_display_amount(5 * 10**17) == "0.000001"
    assert to_display_amount(4 * 10**17) == "0.000000"


def test_display_amount_negative_and_custom_decimals():
    assert to_display_amount(-YOCTO) == "-1.000000"
    assert to_display_amount(1_500_000, decimals=6) == "1.500000"
    assert to_display_amount(7, decimals=0) == "7.000000"


def test_parse_minor_units_inputs():
    assert parse_minor_units(None) == 0
    assert parse_minor_units("") == 0
    assert parse_minor_units("1000000000000000000000000") == YOCTO
    assert parse_minor_units(1e24) == YOCTO
    assert parse_minor_units(Decimal("2E+24")) == 2 * YOCTO


@pytest.mark.parametrize("bad", ["abc", "1.5", 0.5, True, float("nan"), [1]])
def test_parse_minor_units_malformed(bad):
    with pytest.raises(ParseError):
        parse_minor_units(bad)


def test_display_amount_malformed_string_raises():
    with pytest.raises(ParseError):
        to_display_amount("12abc")


def test_to_minor_units_floors():
    assert to_minor_units("1.5") == 15 * 10**23
    assert to_minor_units(0.1) == 10**23
    assert to_minor_units(Decimal("1.9E-24")) == 1
    with pytest.raises(ParseError):
        to_minor_units("lots")


def test_calendar_time_truncates_to_millis():
    assert to_calendar_time(1_700_000_000_123_456_789) == "2023-11-14T22:13:20.123Z"
    assert to_calendar_time("999999") == "1970-01-01T00:00:00.000Z"
    assert to_calendar_time(1_999_999) == "1970-01-01T00:00:00.001Z"
    assert to_calendar_date(1_700_000_000_123_456_789) == "2023-11-14"


def test_parse_timestamp_structured():
    dt = parse_timestamp("1700000000123456789")
    assert dt == datetime(2023, 11, 14, 22, 13, 20, 123_000, tzinfo=timezone.utc)
    assert dt.tzinfo is not None


@pytest.mark.parametrize("bad", [None, "", "17e9", "yesterday"])
def test_parse_timestamp_malformed(bad):
    with pytest.raises(ParseError):
        parse_timestamp(bad)
