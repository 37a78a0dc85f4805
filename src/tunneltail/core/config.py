# src/tunneltail/core/config.py
"""Settings for a tail run.

TailSettings is the central configuration object, frozen after creation.
The CLI builds it from flags and environment variables (typer's envvar
binding); it carries no parsing logic of its own beyond deriving the
endpoint URL and request headers.
"""

import httpx
from pydantic import BaseModel, Field, field_validator

from tunneltail import __version__

DEFAULT_MANAGEMENT_HOSTNAME = "management.argotunnel.com"
DEFAULT_FILTER_LEVEL = "debug"
DEFAULT_LOG_LEVEL = "info"

LOGS_PATH = "/logs"
TRACE_HEADER = "cf-trace-id"


class TailSettings(BaseModel):
    """Configuration for one tail session.

    Attributes:
        connector_id: Stream from a specific connector when a tunnel has several.
        events: Raw --event filter values (validated later by parse_filters).
        level: Raw --level filter value; empty means no level filter.
        token: Access token for the tunnel, passed as a query parameter.
        management_hostname: Host (optionally host:port) of the management endpoint.
        trace: Optional value for the cf-trace-id request header.
        loglevel: Verbosity of local diagnostics on stderr.
        json_logs: Emit diagnostics as JSON instead of console text.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    connector_id: str | None = Field(default=None, description="Connector to stream from")
    events: tuple[str, ...] = Field(default=(), description="Event type filter values")
    level: str = Field(default=DEFAULT_FILTER_LEVEL, description="Minimum level filter value")
    token: str = Field(default="", description="Tunnel access token")
    management_hostname: str = Field(
        default=DEFAULT_MANAGEMENT_HOSTNAME,
        min_length=1,
        description="Management endpoint host",
    )
    trace: str | None = Field(default=None, description="cf-trace-id header value")
    loglevel: str = Field(default=DEFAULT_LOG_LEVEL, description="Diagnostic log level")
    json_logs: bool = Field(default=False, description="JSON diagnostics")

    @field_validator("connector_id", "trace", mode="before")
    @classmethod
    def _blank_is_absent(cls, value: str | None) -> str | None:
        """Treat empty strings from flags/env vars as not provided."""
        if value is None or value == "":
            return None
        return value

    @property
    def logs_url(self) -> str:
        """The wss:// streaming URL including query parameters."""
        params = {"access_token": self.token}
        if self.connector_id is not None:
            params["connector_id"] = self.connector_id
        url = httpx.URL(f"wss://{self.management_hostname}{LOGS_PATH}", params=params)
        return str(url)

    @property
    def user_agent(self) -> str:
        return user_agent()

    def request_headers(self) -> dict[str, str]:
        """Extra headers for the upgrade request (User-Agent is set separately)."""
        headers: dict[str, str] = {}
        if self.trace is not None:
            headers[TRACE_HEADER] = self.trace
        return headers


def user_agent(version: str = __version__) -> str:
    """User-Agent identifying this client and its build version."""
    return f"tunneltail/{version}"
