"""
Sponsorship detection for relayer quote responses.

Relayer versions disagree on how they report that gas will be sponsored.
Each probe rule recognises one spelling; rules are tried in priority order
and the first match wins. A response no rule recognises is "uncertain",
which callers must not treat as a refusal.
"""
from typing import Any, Callable, Iterable, Mapping, NamedTuple, Optional


class ProbeRule(NamedTuple):
    name: str
    matches: Callable[[Mapping[str, Any]], bool]


SPONSORSHIP_PROBES = (
    ProbeRule("sponsor", lambda response: bool(response.get("sponsor"))),
    ProbeRule("sponsored", lambda response: response.get("sponsored") is True),
    ProbeRule("isSponsored", lambda response: response.get("isSponsored") is True),
)


def _candidate_maps(response: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
    yield response
    nested = response.get("quote")
    if isinstance(nested, Mapping):
        yield nested


def detect_sponsorship(
    response: Any,
    rules: Iterable[ProbeRule] = SPONSORSHIP_PROBES
) -> Optional[str]:
    """
    Find the first probe rule that reports sponsorship.

    Args:
        response: Untyped quote response from the relayer
        rules: Probe rules in priority order

    Returns:
        Name of the matching rule, or None when sponsorship is uncertain
    """
    if not isinstance(response, Mapping):
        return None

    rules = tuple(rules)
    for candidate in _candidate_maps(response):
        for rule in rules:
            if rule.matches(candidate):
                return rule.name
    return None


def is_sponsored(response: Any) -> bool:
    """True if any probe rule reports sponsorship."""
    return detect_sponsorship(response) is not None
