# src/tunneltail/management/session.py
"""Open and own a management streaming session.

open_session() is the session negotiator: it performs the WebSocket upgrade,
classifies every way that can fail, and sends the start_streaming event.
Failures are logged here in full detail and then raised as a
NegotiationError subclass so the caller only has to stop. Nothing is
retried.

Failure classification:
- 530: no connector reachable for the tunnel (distinct message, no body decode)
- any other non-101 status: decode the body as a ManagementErrorResponse and
  log each validation error, or fall back to the raw status code
- below HTTP (DNS, TCP, TLS, timeout, malformed handshake): log the error
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import structlog
from pydantic import ValidationError
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidStatus, InvalidURI
from websockets.frames import CloseCode

from tunneltail.contracts.enums import SessionStatus
from tunneltail.contracts.errors import (
    ConnectionFailedError,
    ConnectorUnreachableError,
    NegotiationError,
    SubscribeFailedError,
    UpgradeRejectedError,
)
from tunneltail.contracts.events import EventStartStreaming, ManagementErrorResponse, StreamingFilters
from tunneltail.management.protocol import MessageConnection, write_event

logger = structlog.get_logger(__name__)

# Returned by the edge when no connector for the tunnel is connected (or
# none supports streaming logs). Not an HTTPStatus member.
STATUS_NO_CONNECTOR = 530

# Grace period for the close handshake, also used as the websockets
# close_timeout so a close never blocks longer than this.
CLOSE_GRACE_PERIOD = 1.0

OPEN_TIMEOUT = 10.0

ABRUPT_CLOSE_REASON = "management connection was closed abruptly"

NO_CONNECTOR_MESSAGE = (
    "no cloudflared connector available or reachable via management request "
    "(a recent version of cloudflared is required to use streaming logs)"
)


class StreamingSession:
    """An open management connection and its closure status.

    The session is handed to the event stream reader, which owns all reads.
    Writes happen only during negotiation (start_streaming) and when a close
    frame is sent.

    Closing is idempotent: the first start_close() wins and later calls
    return the same task (or None once the remote has closed).
    """

    def __init__(self, connection: MessageConnection) -> None:
        self._connection = connection
        self._status = SessionStatus.OPEN
        self._established_at = datetime.now(tz=UTC)
        self._close_task: asyncio.Task[None] | None = None

    @property
    def connection(self) -> MessageConnection:
        return self._connection

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def established_at(self) -> datetime:
        return self._established_at

    def mark_closed(self) -> None:
        """Record that the remote closed the connection."""
        self._status = SessionStatus.CLOSED

    def start_close(self, code: int, reason: str) -> asyncio.Task[None] | None:
        """Begin the close handshake without waiting for it.

        Returns:
            The close task, or None if the session was already closed by
            the remote.
        """
        if self._close_task is not None:
            return self._close_task
        if self._status == SessionStatus.CLOSED:
            return None
        self._status = SessionStatus.CLOSING
        self._close_task = asyncio.create_task(self._close(code, reason), name="session-close")
        return self._close_task

    async def close(self, code: int = CloseCode.NORMAL_CLOSURE, reason: str = "") -> None:
        """Close the session and wait for the handshake to finish."""
        task = self.start_close(code, reason)
        if task is not None:
            await task

    async def release(self, timeout: float = CLOSE_GRACE_PERIOD) -> None:
        """Guaranteed teardown: close abruptly unless already closing, bounded by timeout.

        A close already in flight (e.g. the normal closure sent on SIGINT)
        is reused, not replaced.
        """
        task = self.start_close(CloseCode.INTERNAL_ERROR, ABRUPT_CLOSE_REASON)
        if task is None:
            return
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            task.cancel()
            logger.debug("close handshake did not finish in time", timeout=timeout)

    async def _close(self, code: int, reason: str) -> None:
        try:
            await self._connection.close(code, reason)
        finally:
            self._status = SessionStatus.CLOSED


def handle_validation_error(status_code: int, body: bytes) -> NegotiationError:
    """Log why an upgrade was rejected and build the error to raise.

    Args:
        status_code: HTTP status of the rejected upgrade
        body: Response body (may be empty)

    Returns:
        The NegotiationError subclass describing the rejection
    """
    if status_code == STATUS_NO_CONNECTOR:
        logger.error(NO_CONNECTOR_MESSAGE)
        return ConnectorUnreachableError(NO_CONNECTOR_MESSAGE, status_code=status_code)

    try:
        response = ManagementErrorResponse.model_validate_json(body)
    except ValidationError:
        logger.error(
            "unable to start management log streaming session: http response code returned",
            status_code=status_code,
        )
        return UpgradeRejectedError(
            f"unable to start management log streaming session: http response code returned {status_code}",
            status_code=status_code,
        )

    if response.success or not response.errors:
        logger.error(
            "management tunnel validation returned success with invalid HTTP response code "
            "to convert to a WebSocket request",
            status_code=status_code,
        )
        return UpgradeRejectedError(
            f"management tunnel validation returned success with HTTP response code {status_code}",
            status_code=status_code,
        )

    for error in response.errors:
        logger.error(
            "management request failed validation",
            error_code=error.code,
            error_message=error.message,
        )
    summary = "; ".join(f"({error.code}) {error.message}" for error in response.errors)
    return UpgradeRejectedError(
        f"management request failed validation: {summary}",
        status_code=status_code,
    )


async def open_session(
    url: str,
    *,
    user_agent: str,
    headers: dict[str, str] | None = None,
    filters: StreamingFilters | None = None,
    open_timeout: float = OPEN_TIMEOUT,
    close_timeout: float = CLOSE_GRACE_PERIOD,
) -> StreamingSession:
    """Connect to the management endpoint and subscribe to logs.

    Args:
        url: wss:// logs URL including the access_token query parameter
        user_agent: User-Agent header value
        headers: Additional upgrade headers (e.g. cf-trace-id)
        filters: Subscription filter, or None for no filter
        open_timeout: Seconds allowed for the opening handshake
        close_timeout: Seconds allowed for the closing handshake

    Returns:
        An open StreamingSession whose start_streaming event has been sent

    Raises:
        ConnectorUnreachableError: Upgrade rejected with 530
        UpgradeRejectedError: Upgrade rejected with any other non-101 status
        ConnectionFailedError: Connection failed below the HTTP layer
        SubscribeFailedError: start_streaming could not be sent
    """
    try:
        connection = await connect(
            url,
            additional_headers=headers or {},
            user_agent_header=user_agent,
            open_timeout=open_timeout,
            close_timeout=close_timeout,
        )
    except InvalidStatus as e:
        # Raised only for statuses other than 101 Switching Protocols
        raise handle_validation_error(e.response.status_code, e.response.body or b"") from e
    except (InvalidHandshake, InvalidURI, OSError, TimeoutError) as e:
        logger.error("unable to start management log streaming session", error=str(e))
        raise ConnectionFailedError(str(e)) from e

    session = StreamingSession(connection)
    try:
        await write_event(connection, EventStartStreaming(filters=filters))
    except (ConnectionClosed, OSError) as e:
        logger.error("unable to request logs from management tunnel", error=str(e))
        await session.release()
        raise SubscribeFailedError(str(e)) from e

    logger.debug(
        "management log streaming session started",
        filters=filters.model_dump(mode="json", exclude_none=True) if filters is not None else None,
    )
    return session
