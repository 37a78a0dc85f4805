"""
tunneltail: stream live logs from a remote tunnel connector.

Opens a management streaming session, subscribes with an optional
level/event filter, and relays every received log record to stdout.
"""

__version__ = "0.1.0"
