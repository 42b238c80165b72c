"""Dict-backed TransactionStore for tests."""

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from uuid import UUID

from checkout.domain import PurchaseRecord, Transaction, TransactionStatus
from checkout.stores.interfaces import TransactionStore


class MemoryTransactionStore(TransactionStore):
    def __init__(self, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)) -> None:
        self._clock = clock
        self._transactions: dict[UUID, Transaction] = {}
        self._purchases: dict[UUID, list[PurchaseRecord]] = {}
        self._lock = threading.Lock()

    def create(self, transaction: Transaction) -> Transaction:
        with self._lock:
            self._transactions[transaction.id] = transaction
        return transaction

    def get(self, transaction_id: UUID) -> Transaction | None:
        return self._transactions.get(transaction_id)

    def get_by_reference(self, reference: str) -> Transaction | None:
        return next(
            (t for t in self._transactions.values() if t.reference == reference), None
        )

    def set_reference(self, transaction_id: UUID, provider: str, reference: str) -> Transaction:
        with self._lock:
            updated = replace(
                self._transactions[transaction_id],
                provider=provider,
                reference=reference,
                updated_at=self._clock(),
            )
            self._transactions[transaction_id] = updated
        return updated

    def update_status(
        self, transaction_id: UUID, status: TransactionStatus, expected: TransactionStatus
    ) -> Transaction | None:
        with self._lock:
            current = self._transactions[transaction_id]
            if current.status is not expected:
                return None
            updated = replace(current, status=status, updated_at=self._clock())
            self._transactions[transaction_id] = updated
        return updated

    def approve(
        self, transaction_id: UUID, expected: TransactionStatus, records: list[PurchaseRecord]
    ) -> Transaction | None:
        with self._lock:
            current = self._transactions[transaction_id]
            if current.status is not expected:
                return None
            updated = replace(current, status=TransactionStatus.APPROVED, updated_at=self._clock())
            self._transactions[transaction_id] = updated
            self._purchases.setdefault(transaction_id, []).extend(records)
        return updated

    def purchases_for(self, transaction_id: UUID) -> list[PurchaseRecord]:
        return list(self._purchases.get(transaction_id, []))
