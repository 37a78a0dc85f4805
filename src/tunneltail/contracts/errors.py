"""Exceptions raised by the tail client.

None of these reach the process exit code. They are raised at the point of
failure, logged (by the raiser or by the runner), and turned into a clean
return by tunneltail.tail.run_tail.
"""


class TunnelTailError(Exception):
    """Base error for all tail client operations."""


class InvalidFilterValue(TunnelTailError, ValueError):
    """A --level or --event value is not one of the accepted values.

    Attributes:
        flag: Name of the offending option ("level" or "event")
        value: The rejected raw value
    """

    def __init__(self, flag: str, value: str, message: str) -> None:
        self.flag = flag
        self.value = value
        super().__init__(message)


# =============================================================================
# Negotiation Errors
# =============================================================================


class NegotiationError(TunnelTailError):
    """The streaming session could not be established.

    Raised after the failure has already been logged in detail, so callers
    only need to stop. There is no retry.

    Attributes:
        status_code: HTTP status of the rejected upgrade, if one was received
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ConnectorUnreachableError(NegotiationError):
    """The endpoint answered 530: no connector is available for the tunnel."""


class UpgradeRejectedError(NegotiationError):
    """The endpoint answered with a non-101 status other than 530."""


class ConnectionFailedError(NegotiationError):
    """The connection failed below the HTTP layer (DNS, TCP, TLS, timeout)."""


class SubscribeFailedError(NegotiationError):
    """The session opened but the start_streaming event could not be sent."""
