"""Shared contracts: enums, wire events and errors.

Usage:
    from tunneltail.contracts import EventStartStreaming, StreamingFilters, LogLevel
"""

from tunneltail.contracts.enums import (
    ClientEventType,
    LifecycleState,
    LogEventType,
    LogLevel,
    ReaderExit,
    ServerEventType,
    SessionStatus,
    ShutdownTrigger,
)
from tunneltail.contracts.errors import (
    ConnectionFailedError,
    ConnectorUnreachableError,
    InvalidFilterValue,
    NegotiationError,
    SubscribeFailedError,
    TunnelTailError,
    UpgradeRejectedError,
)
from tunneltail.contracts.events import (
    EventLog,
    EventStartStreaming,
    Log,
    ManagementError,
    ManagementErrorResponse,
    ServerEvent,
    StreamingFilters,
)

__all__ = [
    "ClientEventType",
    "ConnectionFailedError",
    "ConnectorUnreachableError",
    "EventLog",
    "EventStartStreaming",
    "InvalidFilterValue",
    "LifecycleState",
    "Log",
    "LogEventType",
    "LogLevel",
    "ManagementError",
    "ManagementErrorResponse",
    "NegotiationError",
    "ReaderExit",
    "ServerEvent",
    "ServerEventType",
    "SessionStatus",
    "ShutdownTrigger",
    "StreamingFilters",
    "SubscribeFailedError",
    "TunnelTailError",
    "UpgradeRejectedError",
]
