# src/tunneltail/tail.py
"""Run one tail session from settings to shutdown.

run_tail() wires the components together in order:
1. Register SIGINT/SIGTERM (unregistered on every exit path)
2. Build the subscription filter (invalid input stops here, before any I/O)
3. Negotiate the session and send start_streaming
4. Start the event stream reader task
5. Hand control to the lifecycle coordinator until the session ends
6. Teardown: stop the reader and close the connection, bounded by the grace period

It always returns normally. Input, negotiation and stream failures are
reported through diagnostics on stderr only.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TextIO

import structlog

from tunneltail.contracts.enums import ReaderExit
from tunneltail.contracts.errors import InvalidFilterValue, NegotiationError
from tunneltail.management.coordinator import LifecycleCoordinator, shutdown_signal_context
from tunneltail.management.filters import parse_filters
from tunneltail.management.reader import EventStreamReader
from tunneltail.management.session import CLOSE_GRACE_PERIOD, open_session

if TYPE_CHECKING:
    from tunneltail.core.config import TailSettings

logger = structlog.get_logger(__name__)


async def run_tail(
    settings: TailSettings,
    *,
    cancelled: asyncio.Event | None = None,
    out: TextIO | None = None,
    grace_period: float = CLOSE_GRACE_PERIOD,
) -> None:
    """Stream logs until cancelled, interrupted or closed by the remote.

    Args:
        settings: Validated settings for this run
        cancelled: External cancellation event (a fresh, never-set event if None)
        out: Sink for log lines (default: stdout)
        grace_period: Seconds to wait for the close handshake and reader on shutdown
    """
    if cancelled is None:
        cancelled = asyncio.Event()

    loop = asyncio.get_running_loop()
    with shutdown_signal_context(loop) as interrupted:
        try:
            filters = parse_filters(settings.level, settings.events)
        except InvalidFilterValue as e:
            logger.error("invalid filters provided", error=str(e))
            return

        try:
            session = await open_session(
                settings.logs_url,
                user_agent=settings.user_agent,
                headers=settings.request_headers(),
                filters=filters,
                close_timeout=grace_period,
            )
        except NegotiationError:
            # Already logged in detail by the negotiator
            return

        reader = EventStreamReader(session, cancelled=cancelled, out=out)
        reader_task = asyncio.create_task(reader.run(), name="event-stream-reader")
        try:
            coordinator = LifecycleCoordinator(
                session,
                reader_task,
                cancelled=cancelled,
                interrupted=interrupted,
                grace_period=grace_period,
            )
            trigger = await coordinator.run()
        finally:
            if not reader_task.done():
                reader_task.cancel()
            (reader_exit,) = await asyncio.gather(reader_task, return_exceptions=True)
            await session.release(grace_period)

        if isinstance(reader_exit, Exception):
            logger.error("event stream reader failed", error=str(reader_exit))
            return
        logger.debug(
            "management log streaming session finished",
            trigger=str(trigger),
            reader_exit=str(reader_exit) if isinstance(reader_exit, ReaderExit) else "cancelled",
            lines=reader.lines_written,
        )
