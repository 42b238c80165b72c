"""Tests for the in-process transaction status notifier.

Run with: pytest tests/test_notifier.py -v
"""

import threading

from checkout.notifier import TransactionStatusNotifier


class TestTransactionStatusNotifier:
    """Tests for subscribe, publish and unsubscribe."""

    def test_publish_reaches_every_subscriber(self):
        """All subscribers of a transaction receive the message."""
        notifier = TransactionStatusNotifier()
        first, second = notifier.subscribe("tx-1"), notifier.subscribe("tx-1")
        assert notifier.publish("tx-1", {"type": "status_update", "status": "APPROVED"}) == 2
        assert first.get(timeout=0)["status"] == "APPROVED"
        assert second.get(timeout=0)["status"] == "APPROVED"

    def test_publish_is_scoped_to_transaction(self):
        """Subscribers of other transactions receive nothing."""
        notifier = TransactionStatusNotifier()
        other = notifier.subscribe("tx-2")
        notifier.publish("tx-1", {"type": "ping"})
        assert other.get(timeout=0) is None

    def test_messages_arrive_in_publish_order(self):
        """Concurrent publishers never reorder messages for one subscriber."""
        notifier = TransactionStatusNotifier()
        subscription = notifier.subscribe("tx-1")
        lock = threading.Lock()
        published = []

        def publisher(n):
            for i in range(50):
                with lock:
                    message = {"type": "ping", "seq": (n, i)}
                    published.append(message["seq"])
                    notifier.publish("tx-1", message)

        threads = [threading.Thread(target=publisher, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        received = [subscription.get(timeout=0)["seq"] for _ in range(200)]
        assert received == published

    def test_close_unsubscribes(self):
        """A closed subscription no longer counts as a subscriber."""
        notifier = TransactionStatusNotifier()
        with notifier.subscribe("tx-1"):
            assert notifier.subscriber_count("tx-1") == 1
        assert notifier.subscriber_count("tx-1") == 0
        assert notifier.publish("tx-1", {"type": "ping"}) == 0

    def test_double_close_is_harmless(self):
        """Closing twice does not raise."""
        notifier = TransactionStatusNotifier()
        subscription = notifier.subscribe("tx-1")
        subscription.close()
        subscription.close()
        assert notifier.subscriber_count("tx-1") == 0
