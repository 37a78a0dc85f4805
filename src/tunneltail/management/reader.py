# src/tunneltail/management/reader.py
"""Event stream reader: pull server events and print log records.

The reader runs as its own asyncio task for the lifetime of a session and
owns the read side of the connection exclusively. It never writes to the
connection and never raises for stream failures: every way the stream can
end is turned into a ReaderExit value and, where unexpected, an error log.

Exit paths:
- CANCELLED: cancellation event observed before a read (the normal path)
- NORMAL_CLOSURE: remote closed with 1000, not logged
- REMOTE_CLOSURE: remote closed with any other code, logged with code and reason
- READ_ERROR: transport or decode failure, logged with the raw error
- WRITE_ERROR: the output sink failed (e.g. stdout piped into a closed reader)

Cancellation is cooperative. The event is polled before each read; a read
already in progress completes (or fails) on its own first.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING, TextIO

import structlog

from tunneltail.contracts.enums import ReaderExit, ServerEventType
from tunneltail.management.protocol import as_closed, into_logs, read_server_event

if TYPE_CHECKING:
    from tunneltail.contracts.events import Log, ServerEvent
    from tunneltail.management.session import StreamingSession

logger = structlog.get_logger(__name__)

FIELDS_PLACEHOLDER = "unable to parse fields"


def render_fields(log: Log) -> str:
    """Serialize a record's field map as compact JSON.

    Falls back to FIELDS_PLACEHOLDER (and a debug log) when the map holds
    values JSON cannot represent, e.g. NaN or Infinity.
    """
    try:
        return json.dumps(log.fields, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        logger.debug("unable to parse fields from event", log=repr(log), error=str(e))
        return FIELDS_PLACEHOLDER


def render_log_line(log: Log) -> str:
    """Format one record as: time level event message fields."""
    return f"{log.time} {log.level} {log.event} {log.message} {render_fields(log)}"


class EventStreamReader:
    """Reads server events from a session and writes log lines to a sink.

    Example:
        >>> reader = EventStreamReader(session, cancelled=asyncio.Event())
        >>> task = asyncio.create_task(reader.run(), name="event-stream-reader")
    """

    def __init__(
        self,
        session: StreamingSession,
        *,
        cancelled: asyncio.Event,
        out: TextIO | None = None,
    ) -> None:
        """Initialize the reader.

        Args:
            session: Open session; the reader takes over its read side
            cancelled: Shared cancellation event, polled before each read
            out: Sink for rendered log lines (default: sys.stdout at write time)
        """
        self._session = session
        self._cancelled = cancelled
        self._out = out
        self._lines_written = 0

    @property
    def lines_written(self) -> int:
        return self._lines_written

    async def run(self) -> ReaderExit:
        """Read until cancelled or the stream ends.

        Returns:
            Why the reader stopped
        """
        while True:
            if self._cancelled.is_set():
                return ReaderExit.CANCELLED

            result = await read_server_event(self._session.connection)
            if result.event is None:
                return self._handle_read_error(result.error)

            if not self._dispatch(result.event):
                return ReaderExit.WRITE_ERROR

    def _handle_read_error(self, error: BaseException | None) -> ReaderExit:
        closed = as_closed(error)
        if closed is not None:
            # Either side already closed the connection; no further reads.
            self._session.mark_closed()
            if closed.is_normal:
                return ReaderExit.NORMAL_CLOSURE
            logger.error("received remote closure", code=closed.code, reason=closed.reason)
            return ReaderExit.REMOTE_CLOSURE

        logger.error("unable to read event from server", error=str(error))
        return ReaderExit.READ_ERROR

    def _dispatch(self, event: ServerEvent) -> bool:
        """Handle one event. Returns False once the sink can no longer be written."""
        match event.type:
            case ServerEventType.LOGS:
                logs = into_logs(event)
                if logs is None:
                    logger.error("invalid logs event")
                    return True
                return all(self._write_line(render_log_line(log)) for log in logs.logs)
            case _:
                logger.debug("unexpected log event type", type=str(event.type))
                return True

    def _write_line(self, line: str) -> bool:
        out = self._out if self._out is not None else sys.stdout
        try:
            out.write(line + "\n")
            out.flush()
        except (OSError, ValueError) as e:
            # ValueError: write to a closed file
            logger.error("unable to write log line", error=str(e))
            return False
        self._lines_written += 1
        return True
