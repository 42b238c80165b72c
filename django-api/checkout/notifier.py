"""In-process fan-out of transaction status changes to stream subscribers.

One ``TransactionStatusNotifier`` exists per process (built in
``CheckoutConfig.ready``). Delivery is at-most-once: a subscriber that is not
connected when a change is published misses it and must poll.
"""

import queue
import threading
from collections import defaultdict
from datetime import datetime, timezone

import structlog

from checkout.domain import Transaction

logger = structlog.get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def connected_message() -> dict:
    return {"type": "connected", "message": "Connected to transaction status stream"}


def status_message(transaction: Transaction) -> dict:
    return {
        "type": "status_update",
        "status": transaction.status.value,
        "transactionId": str(transaction.id),
        "timestamp": _timestamp(),
    }


def ping_message() -> dict:
    return {"type": "ping", "timestamp": _timestamp()}


def error_message(transaction_id: str, error: str) -> dict:
    return {"type": "error", "error": error, "transactionId": transaction_id, "timestamp": _timestamp()}


class Subscription:
    """A queue of messages for one stream connection."""

    def __init__(self, notifier: "TransactionStatusNotifier", transaction_id: str) -> None:
        self.transaction_id = transaction_id
        self._notifier = notifier
        self._queue: queue.Queue[dict] = queue.Queue()

    def put(self, message: dict) -> None:
        self._queue.put(message)

    def get(self, timeout: float | None = None) -> dict | None:
        """Next message, or None when ``timeout`` elapses first."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        self._notifier.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class TransactionStatusNotifier:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, transaction_id: str) -> Subscription:
        subscription = Subscription(self, transaction_id)
        with self._lock:
            self._subscribers[transaction_id].append(subscription)
        logger.debug("sse_subscribed", transaction_id=transaction_id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.transaction_id)
            if not subscribers:
                return
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                del self._subscribers[subscription.transaction_id]

    def publish(self, transaction_id: str, message: dict) -> int:
        """Queue ``message`` for every subscriber of ``transaction_id``.

        Publishing holds the lock, so subscribers see messages for one
        transaction in publish order. Returns the number of subscribers reached.
        """
        with self._lock:
            subscribers = list(self._subscribers.get(transaction_id, ()))
            for subscription in subscribers:
                subscription.put(message)
        logger.info(
            "sse_published",
            transaction_id=transaction_id,
            type=message.get("type"),
            subscribers=len(subscribers),
        )
        return len(subscribers)

    def subscriber_count(self, transaction_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(transaction_id, ()))
