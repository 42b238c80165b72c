"""Store interfaces (repository pattern) for transactions."""

from abc import ABC, abstractmethod
from uuid import UUID

from checkout.domain import PurchaseRecord, Transaction, TransactionStatus


class TransactionStore(ABC):
    """Interface for transaction persistence operations."""

    @abstractmethod
    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction together with its snapshot lines."""
        ...

    @abstractmethod
    def get(self, transaction_id: UUID) -> Transaction | None:
        ...

    @abstractmethod
    def get_by_reference(self, reference: str) -> Transaction | None:
        ...

    @abstractmethod
    def set_reference(self, transaction_id: UUID, provider: str, reference: str) -> Transaction:
        ...

    @abstractmethod
    def update_status(
        self, transaction_id: UUID, status: TransactionStatus, expected: TransactionStatus
    ) -> Transaction | None:
        """Move to ``status`` only if the stored status is still ``expected``.

        Returns None when another writer changed the status first.
        """
        ...

    @abstractmethod
    def approve(
        self, transaction_id: UUID, expected: TransactionStatus, records: list[PurchaseRecord]
    ) -> Transaction | None:
        """Move to APPROVED and store ``records`` as one unit of work.

        Same compare-and-set as ``update_status``: returns None, with nothing
        written, when the stored status is no longer ``expected``.
        """
        ...

    @abstractmethod
    def purchases_for(self, transaction_id: UUID) -> list[PurchaseRecord]:
        ...
