"""
Relayer integration for the Gasless Transfer SDK.
"""
from .client import RelayClient, SponsoredQuote
from .sponsorship import SPONSORSHIP_PROBES, ProbeRule, detect_sponsorship, is_sponsored

__all__ = [
    "RelayClient",
    "SponsoredQuote",
    "ProbeRule",
    "SPONSORSHIP_PROBES",
    "detect_sponsorship",
    "is_sponsored",
]
