"""Domain models representing cart state.

These are pure domain objects with no API input rules.
Django ORM models are in cart/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime

from catalog.domain import ItemType
from cart.domain.value_objects import LineId, Money


@dataclass(frozen=True)
class CartLine:
    """Persisted cart line as stored, without prices."""

    id: LineId
    item_type: ItemType
    date: date
    club_id: str
    quantity: int
    created_at: datetime
    updated_at: datetime
    ticket_id: str | None = None
    menu_item_id: str | None = None
    variant_id: str | None = None

    @property
    def target_id(self) -> str:
        return self.ticket_id if self.item_type is ItemType.TICKET else self.menu_item_id

    @property
    def merge_key(self) -> tuple:
        """Lines with the same key accumulate quantity instead of duplicating."""
        return (self.item_type, self.target_id, self.variant_id, self.date)


@dataclass(frozen=True)
class PricedLine:
    """A cart line resolved against current catalog prices."""

    line: CartLine
    name: str
    unit_price: Money
    subtotal: Money
    max_per_person: int | None
    dynamic_price: Money | None = None
    available: bool = True
    is_event_ticket: bool = False


@dataclass(frozen=True)
class CartSummary:
    """Derived totals for a cart. ``actual_total`` includes the service fee."""

    ticket_subtotal: Money
    menu_subtotal: Money
    total_subtotal: Money
    operational_costs: Money
    actual_total: Money
    item_count: int
    line_count: int

    @classmethod
    def empty(cls) -> "CartSummary":
        zero = Money.zero()
        return cls(zero, zero, zero, zero, zero, 0, 0)
