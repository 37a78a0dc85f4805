# tests/core/test_config.py
"""Tests for TailSettings."""

from urllib.parse import parse_qs, urlsplit

import pytest
from pydantic import ValidationError

from tunneltail import __version__
from tunneltail.core.config import (
    DEFAULT_MANAGEMENT_HOSTNAME,
    TRACE_HEADER,
    TailSettings,
    user_agent,
)


class TestDefaults:
    def test_defaults(self) -> None:
        settings = TailSettings()
        assert settings.level == "debug"
        assert settings.events == ()
        assert settings.management_hostname == DEFAULT_MANAGEMENT_HOSTNAME
        assert settings.loglevel == "info"
        assert settings.connector_id is None
        assert settings.trace is None

    def test_frozen(self) -> None:
        settings = TailSettings()
        with pytest.raises(ValidationError):
            settings.token = "changed"  # type: ignore[misc]

    def test_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValidationError):
            TailSettings(sample=0.5)  # type: ignore[call-arg]

    def test_blank_optional_values_are_absent(self) -> None:
        settings = TailSettings(connector_id="", trace="")
        assert settings.connector_id is None
        assert settings.trace is None

    def test_empty_hostname_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TailSettings(management_hostname="")


class TestLogsUrl:
    def test_secure_logs_endpoint_with_token(self) -> None:
        url = urlsplit(TailSettings(token="abc123").logs_url)
        assert url.scheme == "wss"
        assert url.netloc == DEFAULT_MANAGEMENT_HOSTNAME
        assert url.path == "/logs"
        assert parse_qs(url.query) == {"access_token": ["abc123"]}

    def test_connector_id_added_as_query_parameter(self) -> None:
        url = urlsplit(TailSettings(token="t", connector_id="c-1").logs_url)
        assert parse_qs(url.query) == {"access_token": ["t"], "connector_id": ["c-1"]}

    def test_token_is_encoded(self) -> None:
        url = urlsplit(TailSettings(token="a b&c=d").logs_url)
        assert parse_qs(url.query)["access_token"] == ["a b&c=d"]

    def test_custom_hostname_with_port(self) -> None:
        url = urlsplit(TailSettings(management_hostname="localhost:8443").logs_url)
        assert url.netloc == "localhost:8443"


class TestHeaders:
    def test_no_trace_no_header(self) -> None:
        assert TailSettings().request_headers() == {}

    def test_trace_header(self) -> None:
        assert TailSettings(trace="trace-42").request_headers() == {TRACE_HEADER: "trace-42"}

    def test_user_agent_carries_version(self) -> None:
        assert TailSettings().user_agent == f"tunneltail/{__version__}"
        assert user_agent("9.9.9") == "tunneltail/9.9.9"
