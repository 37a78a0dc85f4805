"""Management streaming session: negotiation, reading and lifecycle.

Components (leaves first):
- filters: parse_filters() for the start_streaming subscription
- protocol: event encode/decode and closure extraction (ReadResult, as_closed)
- session: open_session() negotiator and StreamingSession
- reader: EventStreamReader, the read loop that prints log records
- coordinator: LifecycleCoordinator and shutdown_signal_context()
"""

from tunneltail.management.coordinator import LifecycleCoordinator, shutdown_signal_context
from tunneltail.management.filters import parse_filters
from tunneltail.management.protocol import CloseInfo, ReadResult, as_closed, read_server_event, write_event
from tunneltail.management.reader import EventStreamReader, render_log_line
from tunneltail.management.session import StreamingSession, open_session

__all__ = [
    "CloseInfo",
    "EventStreamReader",
    "LifecycleCoordinator",
    "ReadResult",
    "StreamingSession",
    "as_closed",
    "open_session",
    "parse_filters",
    "read_server_event",
    "render_log_line",
    "shutdown_signal_context",
    "write_event",
]
