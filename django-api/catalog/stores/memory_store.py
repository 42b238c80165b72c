"""Dict-backed CatalogStore for tests and fixtures."""

from dataclasses import replace

from catalog.domain import CatalogItem, ItemType
from catalog.stores.interfaces import CatalogStore


class MemoryCatalogStore(CatalogStore):
    """Holds ``CatalogItem``s keyed by ticket id or (menu item id, variant id)."""

    def __init__(self) -> None:
        self._tickets: dict[str, CatalogItem] = {}
        self._menu: dict[tuple[str, str | None], CatalogItem] = {}

    def add(self, item: CatalogItem) -> CatalogItem:
        if item.item_type is ItemType.TICKET:
            self._tickets[item.item_id] = item
        else:
            self._menu[(item.item_id, item.variant_id)] = item
        return item

    def update(self, item: CatalogItem, **changes) -> CatalogItem:
        return self.add(replace(item, **changes))

    def get_ticket(self, ticket_id: str) -> CatalogItem | None:
        return self._tickets.get(ticket_id)

    def get_menu_item(self, menu_item_id: str, variant_id: str | None = None) -> CatalogItem | None:
        return self._menu.get((menu_item_id, variant_id))
