# src/tunneltail/management/filters.py
"""Build the streaming subscription filter from raw user input.

parse_filters() is the single place where --level and --event values are
validated. It runs before any network activity so a typo never opens a
session.
"""

from collections.abc import Sequence

from tunneltail.contracts.enums import LogEventType, LogLevel
from tunneltail.contracts.errors import InvalidFilterValue
from tunneltail.contracts.events import StreamingFilters

_VALID_LEVELS = ", ".join(member.value for member in LogLevel)
_VALID_EVENTS = ", ".join(member.value for member in LogEventType)


def parse_log_level(value: str) -> LogLevel:
    """Parse a level name, exact and case-sensitive.

    Raises:
        InvalidFilterValue: If value is not one of debug, info, warn, error
    """
    try:
        return LogLevel(value)
    except ValueError:
        raise InvalidFilterValue(
            "level",
            value,
            f"invalid --level filter provided, please use one of the following Log Levels: {_VALID_LEVELS}",
        ) from None


def parse_log_event_type(value: str) -> LogEventType:
    """Parse an event type name, exact and case-sensitive.

    Raises:
        InvalidFilterValue: If value is not one of cloudflared, http, tcp, udp
    """
    try:
        return LogEventType(value)
    except ValueError:
        raise InvalidFilterValue(
            "event",
            value,
            f"invalid --event filter provided, please use one of the following EventTypes: {_VALID_EVENTS}",
        ) from None


def parse_filters(level: str | None, events: Sequence[str]) -> StreamingFilters | None:
    """Validate raw filter input into a subscription filter.

    An empty level string counts as absent. Event order is preserved and
    duplicates are passed through unchanged.

    Args:
        level: Raw --level value, or None
        events: Raw --event values

    Returns:
        A StreamingFilters, or None when neither a level nor any event was
        given. None means the filters field is omitted from start_streaming.

    Raises:
        InvalidFilterValue: On the first value that does not parse

    Example:
        >>> parse_filters("warn", ["http"])
        StreamingFilters(level=<LogLevel.WARN: 'warn'>, events=[<LogEventType.HTTP: 'http'>])
        >>> parse_filters("", []) is None
        True
    """
    parsed_level = parse_log_level(level) if level else None
    parsed_events = [parse_log_event_type(value) for value in events]

    if parsed_level is None and not parsed_events:
        return None

    return StreamingFilters(
        level=parsed_level,
        events=parsed_events or None,
    )
