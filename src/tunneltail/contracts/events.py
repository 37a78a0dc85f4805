"""Wire messages exchanged with the management streaming endpoint.

Uses Pydantic frozen models. Client messages are serialized with
exclude_none so absent optional fields are omitted from the JSON entirely,
which the remote reads as "no restriction".

Server messages are decoded in two stages: ServerEvent reads only the type
tag (and keeps the raw payload), then the typed model for that tag
(EventLog for "logs") is decoded from the retained payload.
"""

from typing import Any

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from tunneltail.contracts.enums import ClientEventType, LogEventType, LogLevel, ServerEventType


class StreamingFilters(BaseModel):
    """Subscription filter sent with start_streaming.

    Only built when at least one of level or events is present.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    level: LogLevel | None = None
    events: list[LogEventType] | None = None


class EventStartStreaming(BaseModel):
    """Client request to begin receiving logs."""

    model_config = {"frozen": True, "extra": "forbid"}

    type: ClientEventType = ClientEventType.START_STREAMING
    filters: StreamingFilters | None = None

    def to_wire(self) -> str:
        """Serialize to the JSON text frame sent on the wire."""
        return self.model_dump_json(exclude_none=True)


class ServerEvent(BaseModel):
    """Envelope of any message from the server.

    Unrecognised type tags (including a missing tag) decode to
    ServerEventType.UNKNOWN instead of failing validation.
    """

    model_config = {"frozen": True, "extra": "ignore"}

    type: ServerEventType = ServerEventType.UNKNOWN
    _raw: str | bytes = PrivateAttr(default="")

    @field_validator("type", mode="before")
    @classmethod
    def _fallback_to_unknown(cls, value: Any) -> Any:
        if isinstance(value, str) and value in {member.value for member in ServerEventType}:
            return value
        return ServerEventType.UNKNOWN

    @classmethod
    def from_wire(cls, raw: str | bytes) -> "ServerEvent":
        """Decode the envelope and retain the raw payload."""
        event = cls.model_validate_json(raw)
        event._raw = raw
        return event

    @property
    def raw(self) -> str | bytes:
        return self._raw


class Log(BaseModel):
    """A single streamed log record.

    Level and event are kept as plain strings: the record is only rendered,
    and a newer remote may send values this client does not know yet.
    """

    model_config = {"frozen": True, "extra": "ignore"}

    time: str = ""
    level: str = ""
    event: str = ""
    message: str = ""
    fields: dict[str, Any] | None = None


class EventLog(BaseModel):
    """Server message carrying a batch of log records, in arrival order."""

    model_config = {"frozen": True, "extra": "ignore"}

    type: ServerEventType = ServerEventType.LOGS
    logs: list[Log] = Field(default_factory=list)


class ManagementError(BaseModel):
    """One entry of a rejected-upgrade validation response."""

    model_config = {"frozen": True, "extra": "ignore"}

    code: int = 0
    message: str = ""


class ManagementErrorResponse(BaseModel):
    """Body returned by the endpoint when it refuses the WebSocket upgrade."""

    model_config = {"frozen": True, "extra": "ignore"}

    success: bool = False
    errors: list[ManagementError] = Field(default_factory=list)
