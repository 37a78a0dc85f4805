"""Status codes, tags and states used across the tail client.

Wire-facing enums (LogLevel, LogEventType, ClientEventType, ServerEventType)
carry the exact strings the management endpoint sends and expects. Matching
is case-sensitive.
"""

from enum import StrEnum


class LogLevel(StrEnum):
    """Minimum log level accepted by the streaming filter."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogEventType(StrEnum):
    """Category of a streamed log record."""

    CLOUDFLARED = "cloudflared"
    HTTP = "http"
    TCP = "tcp"
    UDP = "udp"


class ClientEventType(StrEnum):
    """Messages the client sends to the management endpoint."""

    START_STREAMING = "start_streaming"


class ServerEventType(StrEnum):
    """Messages the management endpoint sends to the client.

    UNKNOWN is the fallback arm for any tag this client does not recognise.
    It is never sent on the wire.
    """

    LOGS = "logs"
    UNKNOWN = "unknown"


class SessionStatus(StrEnum):
    """Closure status of a streaming session."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ReaderExit(StrEnum):
    """Why the event stream reader stopped.

    Values:
        CANCELLED: External cancellation observed before a read
        NORMAL_CLOSURE: Remote closed with code 1000
        REMOTE_CLOSURE: Remote closed with any other code
        READ_ERROR: Transport or decode failure that was not a closure
        WRITE_ERROR: The output sink failed (e.g. a closed stdout pipe)
    """

    CANCELLED = "cancelled"
    NORMAL_CLOSURE = "normal_closure"
    REMOTE_CLOSURE = "remote_closure"
    READ_ERROR = "read_error"
    WRITE_ERROR = "write_error"


class LifecycleState(StrEnum):
    """States of the lifecycle coordinator."""

    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    DONE = "done"


class ShutdownTrigger(StrEnum):
    """Which completion signal ended the session."""

    CANCELLED = "cancelled"
    READER_FINISHED = "reader_finished"
    SIGNAL = "signal"
