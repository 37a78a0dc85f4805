# tests/management/test_filter_properties.py
"""Property-based tests for filter parsing.

Any input either parses into a filter that mirrors it exactly or is
rejected with InvalidFilterValue. Nothing else escapes.
"""

from hypothesis import given
from hypothesis import strategies as st

from tunneltail.contracts.enums import LogEventType, LogLevel
from tunneltail.contracts.errors import InvalidFilterValue
from tunneltail.management.filters import parse_filters

valid_levels = st.sampled_from([member.value for member in LogLevel])
valid_events = st.lists(st.sampled_from([member.value for member in LogEventType]), max_size=8)
any_text = st.text(max_size=12)


@given(level=valid_levels, events=valid_events)
def test_valid_input_round_trips(level: str, events: list[str]) -> None:
    filters = parse_filters(level, events)

    assert filters is not None
    assert filters.level == LogLevel(level)
    if events:
        assert filters.events is not None
        assert [event.value for event in filters.events] == events
    else:
        assert filters.events is None


@given(events=valid_events)
def test_events_without_level(events: list[str]) -> None:
    filters = parse_filters(None, events)

    if not events:
        assert filters is None
    else:
        assert filters is not None
        assert filters.level is None


@given(level=st.one_of(st.none(), any_text), events=st.lists(any_text, max_size=5))
def test_arbitrary_input_parses_or_raises_invalid_filter(level: str | None, events: list[str]) -> None:
    try:
        filters = parse_filters(level, events)
    except InvalidFilterValue as e:
        assert e.flag in {"level", "event"}
        return

    valid_level_names = {member.value for member in LogLevel}
    valid_event_names = {member.value for member in LogEventType}
    assert not level or level in valid_level_names
    assert all(event in valid_event_names for event in events)
    if filters is not None:
        assert filters.events is None or len(filters.events) == len(events)
