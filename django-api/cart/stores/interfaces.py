"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Every mutation happens
through a ``CartUnitOfWork`` obtained from ``CartStore.locked``, which holds
the owner's cart exclusively until the block exits.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime

from catalog.domain import ItemType
from common.identity import CartOwner
from cart.domain import CartLine, LineId


class CartUnitOfWork(ABC):
    """Reads and writes on one owner's cart while its lock is held."""

    @abstractmethod
    def lines(self) -> list[CartLine]:
        """Return the cart lines, newest first."""
        ...

    @abstractmethod
    def get(self, line_id: LineId) -> CartLine | None:
        """Return a line of this cart, or None."""
        ...

    @abstractmethod
    def insert(
        self,
        item_type: ItemType,
        club_id: str,
        on_date: date,
        quantity: int,
        ticket_id: str | None = None,
        menu_item_id: str | None = None,
        variant_id: str | None = None,
    ) -> CartLine:
        """Create a line and return it with its assigned id."""
        ...

    @abstractmethod
    def set_quantity(self, line_id: LineId, quantity: int) -> CartLine:
        """Overwrite a line's quantity and return the updated line."""
        ...

    @abstractmethod
    def delete(self, line_id: LineId) -> bool:
        """Delete a line. Returns False when it did not exist."""
        ...

    @abstractmethod
    def delete_all(self) -> int:
        """Delete every line and return how many were removed."""
        ...


class CartStore(ABC):
    """Interface for cart persistence operations."""

    @abstractmethod
    def locked(self, owner: CartOwner) -> AbstractContextManager[CartUnitOfWork]:
        """Open a unit of work holding the owner's cart exclusively."""
        ...

    @abstractmethod
    def list_lines(self, owner: CartOwner) -> list[CartLine]:
        """Return the owner's lines, newest first, without locking."""
        ...

    @abstractmethod
    def stale_carts(self, cutoff: datetime) -> list[tuple[str, int]]:
        """Return (owner key, line count) for carts holding a line last updated before ``cutoff``."""
        ...

    @abstractmethod
    def clear_cart(self, owner_key: str) -> int:
        """Delete all lines of the cart identified by ``owner_key``."""
        ...
