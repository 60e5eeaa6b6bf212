"""
Tests for utility functions.
"""
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from gasless_sdk.utils import (
    addresses_equal,
    is_local_url,
    parse_units,
    sanitize_payload,
    short_hash,
    validate_url,
)


@pytest.mark.parametrize("amount,decimals,expected", [
    ("10", 18, 10 * 10**18),
    ("0.25", 18, 25 * 10**16),
    (" 1.5 ", 6, 1_500_000),
    ("0", 18, 0),
    ("1e3", 2, 100_000),
    ("2.50000000000000000000000000", 6, 2_500_000),
    ("0.000000000000000000000", 6, 0),
    (7, 0, 7),
    (Decimal("0.000001"), 6, 1),
    ("115792089237316195423570985008687907853269984665640564039457.584007913129639935", 18, 2**256 - 1),
])
def test_parse_units(amount, decimals, expected):
    assert parse_units(amount, decimals) == expected


@pytest.mark.parametrize("amount,match", [
    ("abc", "not a valid decimal"),
    ("", "not a valid decimal"),
    ("Infinity", "finite"),
    ("NaN", "finite"),
    ("0.0000001", "exceeds 6 decimal places"),
    ("1." + "0" * 85 + "1", "exceeds 6 decimal places"),
    ("1e-1000000", "exceeds 6 decimal places"),
    ("1e1000000", "too large"),
    ("115792089237316195423570985008687907853269984665640564039457584007913129.639936", "too large"),
    (1.5, "decimal string"),
    (True, "decimal string"),
    (None, "decimal string"),
])
def test_parse_units_invalid(amount, match):
    with pytest.raises(ValueError, match=match):
        parse_units(amount, 6)


@settings(max_examples=100)
@given(units=st.integers(min_value=0, max_value=2**256 - 1), decimals=st.integers(min_value=0, max_value=18))
def test_parse_units_inverts_formatting(units, decimals):
    """Formatting base units as a decimal string and parsing it back is lossless"""
    whole, fraction = divmod(units, 10**decimals)
    text = f"{whole}.{fraction:0{decimals}d}" if decimals else str(whole)
    assert parse_units(text, decimals) == units


@pytest.mark.parametrize("url,expected", [
    ("http://localhost:8080", True),
    ("http://127.0.0.1/api", True),
    ("https://relayer.example.com", False),
])
def test_is_local_url(url, expected):
    assert is_local_url(url) is expected


def test_validate_url():
    assert validate_url("relayer_url", "https://relayer.example.com/") == "https://relayer.example.com"
    assert validate_url("api_base_url", "http://localhost:3000") == "http://localhost:3000"


@pytest.mark.parametrize("url,match", [
    (None, "must be set"),
    ("", "must be set"),
    ("relayer.example.com", "not a valid URL"),
    ("http://relayer.example.com", "must use https"),
    ("ftp://relayer.example.com", "must use https"),
])
def test_validate_url_invalid(url, match):
    with pytest.raises(ValueError, match=match):
        validate_url("relayer_url", url)


def test_addresses_equal():
    assert addresses_equal("0xABCdef0000000000000000000000000000000001", "0xabcDEF0000000000000000000000000000000001")
    assert not addresses_equal("0x01", "0x02")
    assert not addresses_equal(None, "0x01")
    assert not addresses_equal("", "")


def test_short_hash():
    assert short_hash("0x" + "ab" * 32) == "0xabababab..."
    assert short_hash("0x1") == "0x1"
    assert short_hash(None) == "<none>"


def test_sanitize_payload():
    payload = {
        "quote": {"hash": "0x1", "signature": "0xsecret"},
        "items": [{"apiKey": "key-123"}, {"value": 1}],
        "X-API-Key": None,
    }

    result = sanitize_payload(payload)

    assert result["quote"] == {"hash": "0x1", "signature": "[REDACTED - 8 chars]"}
    assert result["items"] == [{"apiKey": "[REDACTED - 7 chars]"}, {"value": 1}]
    assert result["X-API-Key"] is None
    assert payload["quote"]["signature"] == "0xsecret"
