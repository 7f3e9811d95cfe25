"""Parsing helpers for convention-tagged observation strings.

Some observations carry a leading label ("Date: 2024-01-05", "status: draft",
"source: Interview 3"). Nothing enforces these at write time; the helpers here
are the single place the reading rules live.
"""

from collections.abc import Iterable, Sequence

from .constants import THEME_STATUS_PREFIX


def _starts_with(text: str, prefix: str, case_sensitive: bool) -> bool:
    if case_sensitive:
        return text.startswith(prefix)
    return text.lower().startswith(prefix.lower())


def prefixed_value(
    observations: Sequence[str],
    prefixes: str | Iterable[str],
    case_sensitive: bool = True,
) -> str | None:
    """Return the text after the prefix of the first tagged observation.

    Observations are scanned in order; the first one that starts with any of
    `prefixes` wins. The remainder is stripped of surrounding whitespace.
    Returns None when no observation carries one of the prefixes.

    >>> prefixed_value(["Note", "Date: 2024-01-05 10:30"], ("Date:", "Created:"))
    '2024-01-05 10:30'
    """
    if isinstance(prefixes, str):
        prefixes = (prefixes,)
    prefixes = tuple(prefixes)

    for obs in observations:
        for prefix in prefixes:
            if _starts_with(obs, prefix, case_sensitive):
                return obs[len(prefix):].strip()
    return None


def untagged(observations: Sequence[str], prefixes: Iterable[str]) -> str | None:
    """First observation that carries none of `prefixes`, e.g. a description."""
    prefixes = tuple(prefixes)
    for obs in observations:
        if not any(obs.startswith(p) for p in prefixes):
            return obs
    return None


def mentions_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring test against any keyword."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def matching_observations(observations: Sequence[str], keywords: Iterable[str]) -> list[str]:
    """Observations mentioning any keyword, in original order."""
    keywords = tuple(keywords)
    return [obs for obs in observations if mentions_any(obs, keywords)]


def observation_status(observations: Sequence[str]) -> str | None:
    """Read the legacy ``Status:`` observation used by older theme records.

    Prefix match is case-insensitive; the value is the text after the first
    colon, trimmed. Returns None when no such observation exists.
    """
    return prefixed_value(observations, THEME_STATUS_PREFIX, case_sensitive=False)
