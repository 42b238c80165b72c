"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod

from catalog.domain import CatalogItem


class CatalogStore(ABC):
    """Interface for reading current catalog state."""

    @abstractmethod
    def get_ticket(self, ticket_id: str) -> CatalogItem | None:
        """Return a ticket by ID, or None if it does not exist."""
        ...

    @abstractmethod
    def get_menu_item(self, menu_item_id: str, variant_id: str | None = None) -> CatalogItem | None:
        """Return a menu item, resolved to ``variant_id`` when given.

        Returns None when the item, or the requested variant of it, does not
        exist.
        """
        ...
