# tests/management/test_protocol.py
"""Tests for reading and writing management events."""

import json

import pytest
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosedError
from websockets.frames import Close, CloseCode

from tests.fixtures.transport import FakeConnection, closed_by_remote, log_record, logs_frame
from tunneltail.contracts import EventStartStreaming, LogLevel, ServerEventType, StreamingFilters
from tunneltail.management.protocol import as_closed, into_logs, read_server_event, write_event


class TestAsClosed:
    def test_normal_closure(self) -> None:
        closed = as_closed(closed_by_remote(CloseCode.NORMAL_CLOSURE))

        assert closed is not None
        assert closed.code == 1000
        assert closed.is_normal

    def test_abnormal_code_keeps_reason(self) -> None:
        closed = as_closed(closed_by_remote(1012, "server restarting"))

        assert closed is not None
        assert closed.code == 1012
        assert closed.reason == "server restarting"
        assert not closed.is_normal

    def test_falls_back_to_sent_frame(self) -> None:
        error = ConnectionClosedError(None, Close(CloseCode.GOING_AWAY, "bye"))

        closed = as_closed(error)

        assert closed is not None
        assert closed.code == CloseCode.GOING_AWAY
        assert closed.reason == "bye"

    def test_no_frames_is_abnormal_closure(self) -> None:
        closed = as_closed(ConnectionClosedError(None, None))

        assert closed is not None
        assert closed.code == CloseCode.ABNORMAL_CLOSURE
        assert closed.reason == ""

    @pytest.mark.parametrize("error", [None, OSError("reset"), ValueError("nope")])
    def test_other_errors_are_not_closures(self, error: BaseException | None) -> None:
        assert as_closed(error) is None


class TestWriteEvent:
    @pytest.mark.asyncio
    async def test_sends_json_text_frame(self, connection: FakeConnection) -> None:
        await write_event(connection, EventStartStreaming(filters=StreamingFilters(level=LogLevel.INFO)))

        assert len(connection.sent) == 1
        assert isinstance(connection.sent[0], str)
        assert json.loads(connection.sent[0]) == {"type": "start_streaming", "filters": {"level": "info"}}


class TestReadServerEvent:
    @pytest.mark.asyncio
    async def test_decodes_logs_envelope(self) -> None:
        conn = FakeConnection((logs_frame(log_record("hello")),))

        result = await read_server_event(conn)

        assert result.ok
        assert result.event is not None
        assert result.event.type == ServerEventType.LOGS

    @pytest.mark.asyncio
    async def test_binary_frame_decodes(self) -> None:
        conn = FakeConnection((logs_frame(log_record("hello")).encode(),))

        result = await read_server_event(conn)

        assert result.ok

    @pytest.mark.asyncio
    async def test_unknown_type_is_not_an_error(self) -> None:
        conn = FakeConnection(('{"type": "heartbeat"}',))

        result = await read_server_event(conn)

        assert result.ok
        assert result.event is not None
        assert result.event.type == ServerEventType.UNKNOWN

    @pytest.mark.asyncio
    async def test_malformed_payload_returned_as_error(self) -> None:
        conn = FakeConnection(("not json",))

        result = await read_server_event(conn)

        assert not result.ok
        assert result.event is None
        assert isinstance(result.error, ValidationError)

    @pytest.mark.asyncio
    async def test_closure_returned_as_error(self) -> None:
        conn = FakeConnection((closed_by_remote(1012, "server restarting"),))

        result = await read_server_event(conn)

        assert result.event is None
        closed = as_closed(result.error)
        assert closed is not None
        assert closed.code == 1012

    @pytest.mark.asyncio
    async def test_transport_error_returned_as_error(self) -> None:
        conn = FakeConnection((ConnectionResetError("reset by peer"),))

        result = await read_server_event(conn)

        assert isinstance(result.error, ConnectionResetError)
        assert as_closed(result.error) is None


class TestIntoLogs:
    @pytest.mark.asyncio
    async def test_logs_in_order(self) -> None:
        conn = FakeConnection((logs_frame(log_record("first"), log_record("second", fields={"a": 1})),))
        result = await read_server_event(conn)
        assert result.event is not None

        logs = into_logs(result.event)

        assert logs is not None
        assert [log.message for log in logs.logs] == ["first", "second"]
        assert logs.logs[1].fields == {"a": 1}
        assert logs.logs[0].fields is None

    @pytest.mark.asyncio
    async def test_unknown_event_is_not_logs(self) -> None:
        conn = FakeConnection(('{"type": "heartbeat", "logs": []}',))
        result = await read_server_event(conn)
        assert result.event is not None

        assert into_logs(result.event) is None

    @pytest.mark.asyncio
    async def test_logs_with_wrong_shape(self) -> None:
        conn = FakeConnection(('{"type": "logs", "logs": "oops"}',))
        result = await read_server_event(conn)
        assert result.event is not None

        assert into_logs(result.event) is None

    @pytest.mark.asyncio
    async def test_unknown_log_level_kept_verbatim(self) -> None:
        conn = FakeConnection((logs_frame(log_record("m", level="trace", event="quic")),))
        result = await read_server_event(conn)
        assert result.event is not None

        logs = into_logs(result.event)

        assert logs is not None
        assert logs.logs[0].level == "trace"
        assert logs.logs[0].event == "quic"


class TestClosedByRemoteFixture:
    def test_reply_to_local_close_prefers_received_frame(self) -> None:
        error = closed_by_remote(CloseCode.NORMAL_CLOSURE, sent=Close(CloseCode.NORMAL_CLOSURE, ""))

        assert error.rcvd_then_sent is False
        closed = as_closed(error)
        assert closed is not None
        assert closed.is_normal
