"""Catalog domain objects as seen by the cart.

A ``CatalogItem`` flattens a ticket, a menu item or a menu item variant into
the facts pricing and limit checks need.
"""

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum


class ItemType(str, Enum):
    TICKET = "ticket"
    MENU = "menu"


class TicketCategory(str, Enum):
    GENERAL = "general"
    EVENT = "event"
    FREE = "free"


@dataclass(frozen=True)
class OpeningHours:
    """Opening window for one weekday. ``close <= open`` crosses midnight."""

    day: str
    open: time
    close: time


@dataclass(frozen=True)
class ClubSchedule:
    """Weekdays a club opens on and its hours for each of them."""

    open_days: tuple[str, ...] = ()
    hours: tuple[OpeningHours, ...] = ()

    def hours_for(self, day: str) -> OpeningHours | None:
        for entry in self.hours:
            if entry.day == day:
                return entry
        return None

    def is_open_on(self, day: str) -> bool:
        return day in self.open_days


@dataclass(frozen=True)
class IncludedMenuItem:
    """A menu item (or variant) handed out with every unit of a ticket."""

    menu_item_id: str
    name: str
    quantity: int
    variant_id: str | None = None


@dataclass(frozen=True)
class CatalogItem:
    """Sellable ticket or menu entry resolved to its effective pricing facts."""

    item_type: ItemType
    item_id: str
    club_id: str
    name: str
    base_price: Decimal
    dynamic_pricing_enabled: bool
    max_per_person: int | None
    schedule: ClubSchedule
    is_active: bool = True
    variant_id: str | None = None
    has_variants: bool = False
    category: TicketCategory | None = None
    stock: int | None = None
    available_date: date | None = None
    event_start: time | None = None
    included_menu_items: tuple[IncludedMenuItem, ...] = ()

    @property
    def is_event_ticket(self) -> bool:
        return self.category is TicketCategory.EVENT

    @property
    def is_free_ticket(self) -> bool:
        return self.category is TicketCategory.FREE
