# src/tunneltail/management/coordinator.py
"""Lifecycle coordinator: supervise the reader and drive a single shutdown.

State machine:
    RUNNING --(cancelled)--------------------------------> DONE
    RUNNING --(reader finished)--------------------------> DONE
    RUNNING --(SIGINT/SIGTERM)--> SHUTTING_DOWN --(reader finished
                                                   or grace period)--> DONE

The first of the three completion signals to fire wins. On a signal the
coordinator starts a normal-closure close (1000, empty reason) and waits up
to the grace period for the reader to notice; it then returns regardless.
Every path is a clean return: failures are reported only through logs.
"""

from __future__ import annotations

import asyncio
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from websockets.frames import CloseCode

from tunneltail.contracts.enums import LifecycleState, ShutdownTrigger
from tunneltail.management.session import CLOSE_GRACE_PERIOD

if TYPE_CHECKING:
    from tunneltail.contracts.enums import ReaderExit
    from tunneltail.management.session import StreamingSession

logger = structlog.get_logger(__name__)

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


@contextmanager
def shutdown_signal_context(loop: asyncio.AbstractEventLoop) -> Iterator[asyncio.Event]:
    """Install SIGINT/SIGTERM handlers on the loop that set a shutdown event.

    Handlers are registered on entry and removed in a finally block, so
    they never outlive the session. After the first SIGINT the default
    handler is restored, so a second Ctrl-C raises KeyboardInterrupt.

    Signal handlers can only be installed from the main thread, and not on
    loops without add_signal_handler support (Windows). In those cases the
    returned Event still works; it just won't be triggered by OS signals.

    Yields the Event for the coordinator to wait on.
    """
    interrupted = asyncio.Event()

    if threading.current_thread() is not threading.main_thread():
        yield interrupted
        return

    def _handler(sig: signal.Signals) -> None:
        interrupted.set()
        # Restore default SIGINT so a second Ctrl-C force-quits during teardown
        if sig == signal.SIGINT:
            loop.remove_signal_handler(signal.SIGINT)

    registered: list[signal.Signals] = []
    try:
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, _handler, sig)
            registered.append(sig)
    except NotImplementedError:
        logger.debug("signal handlers not supported by this event loop")

    try:
        yield interrupted
    finally:
        for sig in registered:
            loop.remove_signal_handler(sig)


class LifecycleCoordinator:
    """Wait for the session to end and perform the ordered shutdown.

    Example:
        >>> coordinator = LifecycleCoordinator(
        ...     session, reader_task, cancelled=cancelled, interrupted=interrupted
        ... )
        >>> trigger = await coordinator.run()
    """

    def __init__(
        self,
        session: StreamingSession,
        reader_task: asyncio.Task[ReaderExit],
        *,
        cancelled: asyncio.Event,
        interrupted: asyncio.Event,
        grace_period: float = CLOSE_GRACE_PERIOD,
    ) -> None:
        """Initialize the coordinator.

        Args:
            session: The session whose reader is being supervised
            reader_task: Task running EventStreamReader.run()
            cancelled: External cancellation event
            interrupted: Set by the OS signal handlers
            grace_period: Seconds to wait for the reader after sending a close frame
        """
        self._session = session
        self._reader_task = reader_task
        self._cancelled = cancelled
        self._interrupted = interrupted
        self._grace_period = grace_period
        self._state = LifecycleState.RUNNING

    @property
    def state(self) -> LifecycleState:
        return self._state

    async def run(self) -> ShutdownTrigger:
        """Block until one completion signal fires, then shut down.

        Returns:
            The signal that ended the session
        """
        cancel_wait = asyncio.create_task(self._cancelled.wait(), name="wait-cancelled")
        interrupt_wait = asyncio.create_task(self._interrupted.wait(), name="wait-interrupted")
        try:
            done, _ = await asyncio.wait(
                {cancel_wait, interrupt_wait, self._reader_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_wait.cancel()
            interrupt_wait.cancel()

        if cancel_wait in done:
            trigger = ShutdownTrigger.CANCELLED
        elif self._reader_task in done:
            trigger = ShutdownTrigger.READER_FINISHED
        else:
            trigger = ShutdownTrigger.SIGNAL
            await self._shutdown()

        self._state = LifecycleState.DONE
        return trigger

    async def _shutdown(self) -> None:
        """Send a normal closure and give the reader the grace period to finish."""
        self._state = LifecycleState.SHUTTING_DOWN
        logger.debug("closing management connection")
        self._session.start_close(CloseCode.NORMAL_CLOSURE, "")
        _, pending = await asyncio.wait({self._reader_task}, timeout=self._grace_period)
        if pending:
            logger.debug("reader did not finish within grace period", grace_period=self._grace_period)
