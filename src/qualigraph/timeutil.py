"""Date parsing for dates embedded in observation text.

Supports anything ``dateutil`` understands:
- ISO format: "2024-01-15", "2024-01-15T14:30:00"
- Written out: "January 15, 2024", "15 Jan 2024 2pm"

Naive results are treated as UTC so all parsed dates compare with each other.
"""

from datetime import datetime, timezone

from dateutil import parser as dateparser

# Sort key for items whose date is absent or unparsable
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_date(text: str) -> datetime:
    """Parse a free-form date string.

    Args:
        text: Date text, e.g. the part of "Date: 2024-01-05" after the prefix

    Returns:
        Parsed datetime (timezone-aware)

    Raises:
        ValueError: If the text cannot be parsed

    Examples:
        >>> parse_date("2024-01-05")
        datetime(2024, 1, 5, 0, 0, tzinfo=timezone.utc)
    """
    text = text.strip()
    if not text:
        raise ValueError("Cannot parse empty date")

    try:
        parsed = dateparser.parse(text)
    except (ValueError, OverflowError, dateparser.ParserError) as e:
        raise ValueError(f"Cannot parse date: {text}") from e

    if parsed is None:
        raise ValueError(f"Cannot parse date: {text}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date_or_none(text: str | None) -> datetime | None:
    """Like parse_date, but absent or unparsable input yields None."""
    if text is None:
        return None
    try:
        return parse_date(text)
    except ValueError:
        return None


def parse_date_or_epoch(text: str | None) -> datetime:
    """Like parse_date, but absent or unparsable input yields EPOCH."""
    parsed = parse_date_or_none(text)
    return EPOCH if parsed is None else parsed
