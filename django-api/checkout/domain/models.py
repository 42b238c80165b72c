"""Domain models for checkout transactions and purchase records.

A ``Transaction`` owns an immutable snapshot of the priced cart taken at
submission. Later cart mutations never reach it.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from catalog.domain import ItemType
from cart.domain import Money


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    VOIDED = "VOIDED"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING

    def can_transition_to(self, target: "TransactionStatus") -> bool:
        """Only PENDING moves, and only to a terminal state."""
        return self is TransactionStatus.PENDING and target.is_terminal


@dataclass(frozen=True)
class TransactionLine:
    """A cart line as it was priced when the transaction was submitted."""

    item_type: ItemType
    club_id: str
    date: date
    name: str
    unit_price: Money
    quantity: int
    subtotal: Money
    ticket_id: str | None = None
    menu_item_id: str | None = None
    variant_id: str | None = None


@dataclass(frozen=True)
class Transaction:
    id: UUID
    owner_key: str
    buyer_email: str
    club_id: str
    status: TransactionStatus
    lines: tuple[TransactionLine, ...]
    ticket_subtotal: Money
    menu_subtotal: Money
    total_subtotal: Money
    operational_costs: Money
    actual_total: Money
    created_at: datetime
    updated_at: datetime
    customer: dict = field(default_factory=dict)
    provider: str | None = None
    reference: str | None = None

    @property
    def is_free(self) -> bool:
        return self.total_subtotal.amount == 0


@dataclass(frozen=True)
class PurchaseRecord:
    """One purchased line, decoupled from the cart.

    Menu items bundled with a ticket are records of their own with a zero
    price and ``source_purchase_id`` pointing at the ticket record.
    """

    id: UUID
    transaction_id: UUID
    item_type: ItemType
    club_id: str
    date: date
    name: str
    unit_price: Money
    quantity: int
    subtotal: Money
    ticket_id: str | None = None
    menu_item_id: str | None = None
    variant_id: str | None = None
    qr_payload: str | None = None
    source_purchase_id: UUID | None = None
