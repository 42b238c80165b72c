"""Follow a transaction's status over the server-sent event stream.

The stream is at-most-once. After every dropped connection the consumer
waits (1 s doubling, capped at 30 s), polls the transaction, reports the
status if it changed, and reconnects. After ``max_attempts`` consecutive
failures it raises ``StreamDisconnectedError``.
"""

import json
import threading
from collections.abc import Callable, Iterator

import requests
import structlog

from client.api import CartApiClient
from client.errors import CartClientError, StreamDisconnectedError
from client.schemas import TERMINAL_STATUSES, StreamEvent, parse

logger = structlog.get_logger(__name__)

BASE_DELAY = 1.0
MAX_DELAY = 30.0
MAX_ATTEMPTS = 5
LOST_MESSAGE = "Connection lost. Please refresh the page."


def backoff_delay(attempt: int, base: float = BASE_DELAY, cap: float = MAX_DELAY) -> float:
    """Delay before reconnect ``attempt`` (1-based)."""
    return min(base * 2 ** (attempt - 1), cap)


def iter_events(lines: Iterator[str]) -> Iterator[StreamEvent]:
    """Parse ``data:`` frames from decoded SSE lines."""
    data: list[str] = []
    for line in lines:
        if line is None:
            continue
        if line == "":
            if data:
                yield parse(StreamEvent, json.loads("\n".join(data)))
                data = []
            continue
        if line.startswith("data:"):
            data.append(line[5:].lstrip())
    if data:
        yield parse(StreamEvent, json.loads("\n".join(data)))


class TransactionStatusStream:
    """One status subscription for one transaction.

    ``on_status`` is called once per distinct status observed, whether it
    arrived on the stream or through a reconcile poll.
    """

    def __init__(
        self,
        api: CartApiClient,
        transaction_id: str,
        on_status: Callable[[str], None],
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY,
        max_delay: float = MAX_DELAY,
    ) -> None:
        self.api = api
        self.transaction_id = transaction_id
        self.on_status = on_status
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.last_status: str | None = None
        self._closed = threading.Event()
        self._response: requests.Response | None = None
        self._connected = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Stop following. Cancels a pending reconnect wait."""
        self._closed.set()
        response = self._response
        if response is not None:
            response.close()

    def run(self) -> str | None:
        """Block until a terminal status (returned) or ``close()`` (returns None)."""
        attempts = 0
        while not self.closed:
            try:
                if self._consume():
                    return self.last_status
            except (requests.RequestException, CartClientError, ValueError) as exc:
                logger.info("sse_connection_dropped", transaction_id=self.transaction_id, error=str(exc))
            if self.closed:
                return None
            if self._connected:
                attempts = 0

            attempts += 1
            if attempts > self.max_attempts:
                logger.warning("sse_gave_up", transaction_id=self.transaction_id, attempts=attempts - 1)
                raise StreamDisconnectedError(LOST_MESSAGE, code="STREAM_DISCONNECTED")
            delay = backoff_delay(attempts, self.base_delay, self.max_delay)
            logger.info("sse_reconnecting", transaction_id=self.transaction_id, attempt=attempts, delay=delay)
            if self._closed.wait(delay):
                return None
            if self._reconcile():
                return self.last_status
        return None

    def _consume(self) -> bool:
        """Read one connection. True once a terminal status was seen."""
        self._connected = False
        response = self.api.open_stream(self.transaction_id)
        self._response = response
        try:
            for event in iter_events(response.iter_lines(decode_unicode=True)):
                if self.closed:
                    return False
                if event.type == "connected":
                    self._connected = True
                elif event.type == "status_update" and event.status:
                    self._report(event.status)
                    if event.status in TERMINAL_STATUSES:
                        return True
                elif event.type == "error":
                    logger.info("sse_server_error", transaction_id=self.transaction_id, error=event.error)
                    return False
            return False
        finally:
            self._response = None
            response.close()

    def _reconcile(self) -> bool:
        """Poll the current status after a drop. True when it is terminal."""
        try:
            transaction = self.api.get_transaction(self.transaction_id)
        except CartClientError as exc:
            logger.info("sse_reconcile_failed", transaction_id=self.transaction_id, error=str(exc))
            return False
        self._report(transaction.status)
        return transaction.is_terminal

    def _report(self, status: str) -> None:
        if status == self.last_status:
            return
        self.last_status = status
        self.on_status(status)
