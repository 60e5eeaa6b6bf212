"""
Utility functions for the Gasless Transfer SDK.
"""
import urllib.parse
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

# Fields never written to logs verbatim
_SENSITIVE_KEYS = ("signature", "apiKey", "api_key", "X-API-Key")

_MAX_UINT256 = 2**256 - 1
_MAX_UINT256_DIGITS = len(str(_MAX_UINT256))


def parse_units(amount: str, decimals: int) -> int:
    """
    Convert a human-readable decimal amount into integer base units.

    Args:
        amount: Decimal string such as "10" or "0.25"
        decimals: Token decimal precision (18 for standard ERC-20 tokens)

    Returns:
        Amount in base units

    Raises:
        ValueError: If the amount is not a finite decimal or has more
            fractional digits than the token supports, or does not fit
            in a uint256
    """
    if isinstance(amount, bool) or not isinstance(amount, (str, int, Decimal)):
        raise ValueError(f"Amount must be a decimal string, got {type(amount).__name__}")

    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Amount is not a valid decimal: {amount!r}")

    if not value.is_finite():
        raise ValueError(f"Amount must be finite, got {amount!r}")

    sign, digits, exponent = value.as_tuple()
    if not any(digits):
        return 0

    # Trailing zeros past the token precision carry no value
    digits = list(digits)
    while exponent < -decimals and digits[-1] == 0:
        digits.pop()
        exponent += 1
    if exponent < -decimals:
        raise ValueError(f"Amount {amount!r} exceeds {decimals} decimal places")
    if len(digits) + exponent + decimals > _MAX_UINT256_DIGITS:
        raise ValueError(f"Amount {amount!r} is too large")

    units = int("".join(str(d) for d in digits)) * 10 ** (exponent + decimals)
    if units > _MAX_UINT256:
        raise ValueError(f"Amount {amount!r} is too large")
    return -units if sign else units


def is_local_url(url: str) -> bool:
    """Check whether a URL points at the local machine."""
    host = urllib.parse.urlparse(url).hostname or ""
    return host in ("localhost", "127.0.0.1", "::1")


def validate_url(url_name: str, url: Optional[str]) -> str:
    """
    Validate that a service URL is present and uses https.

    Plain http is accepted for localhost so development backends work.

    Args:
        url_name: Name used in error messages
        url: URL to validate

    Returns:
        The URL without a trailing slash

    Raises:
        ValueError: If the URL is empty, malformed or insecure
    """
    if not url:
        raise ValueError(f"{url_name} must be set")

    parsed = urllib.parse.urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"{url_name} is not a valid URL: {url}")
    if parsed.scheme != "https" and not is_local_url(url):
        raise ValueError(f"{url_name} must use https:// for security (got: {parsed.scheme}://)")

    return url.rstrip("/")


def addresses_equal(left: Optional[str], right: Optional[str]) -> bool:
    """Case-insensitive comparison of two hex addresses."""
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


def short_hash(value: Optional[str], keep: int = 10) -> str:
    """Truncate a hash or address for log output."""
    if not value:
        return "<none>"
    return value if len(value) <= keep else f"{value[:keep]}..."


def sanitize_payload(payload: Any) -> Any:
    """
    Remove sensitive data from a payload for logging

    Args:
        payload: JSON-like payload to sanitize

    Returns:
        Copy of the payload with signatures and keys redacted
    """
    if isinstance(payload, list):
        return [sanitize_payload(item) for item in payload]
    if not isinstance(payload, dict):
        return payload

    result: Dict[str, Any] = {}
    for key, value in payload.items():
        if key in _SENSITIVE_KEYS and value is not None:
            result[key] = f"[REDACTED - {len(str(value))} chars]"
        else:
            result[key] = sanitize_payload(value)
    return result
