# src/tunneltail/management/protocol.py
"""Read and write management events over an open WebSocket.

Reads never raise for transport or decode failures. read_server_event()
returns a ReadResult that holds either the decoded event or the error, and
as_closed() extracts closure details (code and reason) from that error when
it represents a WebSocket close. Callers branch on values, not on exception
subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed
from websockets.frames import CloseCode

from tunneltail.contracts.enums import ServerEventType
from tunneltail.contracts.events import EventLog, EventStartStreaming, ServerEvent

if TYPE_CHECKING:
    from websockets.typing import Data


class MessageConnection(Protocol):
    """The part of a WebSocket connection the management protocol uses."""

    async def recv(self) -> Data: ...

    async def send(self, message: Data) -> None: ...

    async def close(self, code: int = CloseCode.NORMAL_CLOSURE, reason: str = "") -> None: ...


@dataclass(frozen=True, slots=True)
class CloseInfo:
    """Close code and reason of a terminated WebSocket."""

    code: int
    reason: str

    @property
    def is_normal(self) -> bool:
        return self.code == CloseCode.NORMAL_CLOSURE


@dataclass(frozen=True, slots=True)
class ReadResult:
    """Outcome of one read: exactly one of event or error is set."""

    event: ServerEvent | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def as_closed(error: BaseException | None) -> CloseInfo | None:
    """Return closure details if error represents a closed WebSocket.

    Prefers the close frame received from the remote. When no frame was
    received but one was sent (local close that the remote never answered),
    the sent frame is used. A connection that dropped without any close
    frame reports 1006 (abnormal closure).

    Returns:
        CloseInfo for closure errors, None for anything else
    """
    if not isinstance(error, ConnectionClosed):
        return None
    frame = error.rcvd if error.rcvd is not None else error.sent
    if frame is None:
        return CloseInfo(code=CloseCode.ABNORMAL_CLOSURE, reason="")
    return CloseInfo(code=frame.code, reason=frame.reason)


async def write_event(connection: MessageConnection, event: EventStartStreaming) -> None:
    """Send a client event as a JSON text frame."""
    await connection.send(event.to_wire())


async def read_server_event(connection: MessageConnection) -> ReadResult:
    """Receive and decode the next server event envelope.

    Transport failures (including closure) and malformed payloads are
    returned in ReadResult.error.
    """
    try:
        raw = await connection.recv()
    except (ConnectionClosed, OSError) as e:
        return ReadResult(error=e)
    try:
        return ReadResult(event=ServerEvent.from_wire(raw))
    except ValidationError as e:
        return ReadResult(error=e)


def into_logs(event: ServerEvent) -> EventLog | None:
    """Decode a logs envelope into its typed form.

    Returns:
        EventLog, or None if the event is not a logs event or its payload
        does not match the logs schema
    """
    if event.type != ServerEventType.LOGS:
        return None
    try:
        return EventLog.model_validate_json(event.raw)
    except ValidationError:
        return None
