"""Core infrastructure: settings and diagnostic logging."""

from tunneltail.core.config import TailSettings
from tunneltail.core.logging import configure_logging

__all__ = [
    "TailSettings",
    "configure_logging",
]
