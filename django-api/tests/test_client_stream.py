"""Tests for following a transaction over the status stream."""

import json
import threading

import pytest
import requests

from client.errors import NotFoundError, StreamDisconnectedError
from client.schemas import Transaction
from client.stream import LOST_MESSAGE, TransactionStatusStream, backoff_delay, iter_events
from tests.client_payloads import TRANSACTION_ID, transaction_payload


def frame(**message) -> list[str]:
    return [f"data: {json.dumps(message)}", ""]


class FakeResponse:
    def __init__(self, lines: list[str], drop: bool = False) -> None:
        self.lines = lines
        self.drop = drop
        self.closed = False

    def iter_lines(self, decode_unicode=False):
        yield from self.lines
        if self.drop:
            raise requests.ConnectionError("connection reset")

    def close(self):
        self.closed = True


class FakeApi:
    """Serves scripted stream connections and transaction polls."""

    def __init__(self, connections: list, statuses: list[str] | None = None) -> None:
        self.connections = list(connections)
        self.statuses = list(statuses or [])
        self.opened = 0
        self.polled = 0

    def open_stream(self, transaction_id):
        self.opened += 1
        if not self.connections:
            raise requests.ConnectionError("refused")
        connection = self.connections.pop(0)
        if isinstance(connection, Exception):
            raise connection
        return connection

    def get_transaction(self, transaction_id, refresh=False):
        self.polled += 1
        status = self.statuses.pop(0) if self.statuses else "PENDING"
        return Transaction.model_validate(transaction_payload(status))


def follow(api, **kwargs):
    seen: list[str] = []
    stream = TransactionStatusStream(api, TRANSACTION_ID, seen.append, base_delay=0, **kwargs)
    return stream, seen


class TestBackoff:
    @pytest.mark.parametrize("attempt,expected", [(1, 1), (2, 2), (3, 4), (5, 16), (6, 30), (10, 30)])
    def test_doubles_up_to_cap(self, attempt, expected):
        assert backoff_delay(attempt) == expected


class TestIterEvents:
    def test_parses_frames_and_skips_comments(self):
        lines = [": keepalive", *frame(type="connected"), *frame(type="status_update", status="PENDING")]
        events = list(iter_events(iter(lines)))
        assert [e.type for e in events] == ["connected", "status_update"]
        assert events[1].status == "PENDING"


class TestTransactionStatusStream:
    """Tests for reporting, reconnecting and giving up."""

    def test_terminal_status_ends_run(self):
        """The stream reports each status once and returns the terminal one."""
        response = FakeResponse(
            frame(type="connected")
            + frame(type="status_update", status="PENDING")
            + frame(type="ping")
            + frame(type="status_update", status="PENDING")
            + frame(type="status_update", status="APPROVED")
        )
        stream, seen = follow(FakeApi([response]))
        assert stream.run() == "APPROVED"
        assert seen == ["PENDING", "APPROVED"]
        assert response.closed

    def test_reconcile_after_drop(self):
        """A status missed while disconnected is picked up by the poll."""
        dropped = FakeResponse(frame(type="connected") + frame(type="status_update", status="PENDING"), drop=True)
        api = FakeApi([dropped], statuses=["DECLINED"])
        stream, seen = follow(api)
        assert stream.run() == "DECLINED"
        assert seen == ["PENDING", "DECLINED"]
        assert api.polled == 1

    def test_reconnects_after_pending_poll(self):
        dropped = FakeResponse(frame(type="connected"), drop=True)
        settled = FakeResponse(frame(type="connected") + frame(type="status_update", status="APPROVED"))
        api = FakeApi([dropped, settled], statuses=["PENDING"])
        stream, seen = follow(api)
        assert stream.run() == "APPROVED"
        assert seen == ["PENDING", "APPROVED"]
        assert api.opened == 2

    def test_server_error_frame_triggers_reconnect(self):
        errored = FakeResponse(frame(type="connected") + frame(type="error", error="Internal stream error"))
        api = FakeApi([errored], statuses=["VOIDED"])
        stream, _ = follow(api)
        assert stream.run() == "VOIDED"

    def test_gives_up_after_max_attempts(self):
        """Consecutive failed connections end with the lost-connection error."""
        api = FakeApi([])
        stream, seen = follow(api, max_attempts=5)
        with pytest.raises(StreamDisconnectedError) as exc_info:
            stream.run()
        assert exc_info.value.message == LOST_MESSAGE
        assert api.opened == 6
        assert api.polled == 5
        assert seen == ["PENDING"]

    def test_open_errors_count_as_failures(self):
        api = FakeApi([NotFoundError("Transaction not found")] * 3)
        stream, _ = follow(api, max_attempts=2)
        with pytest.raises(StreamDisconnectedError):
            stream.run()

    def test_successful_connection_resets_attempts(self):
        """A connection that reached ``connected`` starts the count over."""
        connections = [
            requests.ConnectionError("refused"),
            requests.ConnectionError("refused"),
            FakeResponse(frame(type="connected"), drop=True),
            requests.ConnectionError("refused"),
            FakeResponse(frame(type="connected") + frame(type="status_update", status="APPROVED")),
        ]
        stream, _ = follow(FakeApi(connections), max_attempts=2)
        assert stream.run() == "APPROVED"

    def test_close_cancels_reconnect_wait(self):
        """close() interrupts the backoff wait and run returns None."""
        api = FakeApi([])
        stream = TransactionStatusStream(api, TRANSACTION_ID, lambda status: None, base_delay=60, max_delay=60)
        result: list = []
        worker = threading.Thread(target=lambda: result.append(stream.run()))
        worker.start()
        stream.close()
        worker.join(5)
        assert not worker.is_alive()
        assert result == [None]
        assert stream.closed
