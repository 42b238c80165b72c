"""In-process CartStore, one ``threading.Lock`` per owner.

Used for single-instance deployments without a database and in tests.
"""

import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone

from catalog.domain import ItemType
from common.identity import CartOwner
from cart.domain import CartLine, LineId
from cart.stores.interfaces import CartStore, CartUnitOfWork


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _MemoryUnitOfWork(CartUnitOfWork):
    def __init__(self, lines: dict[LineId, CartLine], clock: Callable[[], datetime]) -> None:
        self._lines = lines
        self._clock = clock

    def lines(self) -> list[CartLine]:
        return sorted(self._lines.values(), key=lambda line: line.created_at, reverse=True)

    def get(self, line_id: LineId) -> CartLine | None:
        return self._lines.get(line_id)

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
        now = self._clock()
        line = CartLine(
            id=LineId(uuid.uuid4()),
            item_type=item_type,
            date=on_date,
            club_id=club_id,
            quantity=quantity,
            created_at=now,
            updated_at=now,
            ticket_id=ticket_id,
            menu_item_id=menu_item_id,
            variant_id=variant_id,
        )
        self._lines[line.id] = line
        return line

    def set_quantity(self, line_id: LineId, quantity: int) -> CartLine:
        line = replace(self._lines[line_id], quantity=quantity, updated_at=self._clock())
        self._lines[line_id] = line
        return line

    def delete(self, line_id: LineId) -> bool:
        return self._lines.pop(line_id, None) is not None

    def delete_all(self) -> int:
        count = len(self._lines)
        self._lines.clear()
        return count


class MemoryCartStore(CartStore):
    """Dict-backed store with per-owner mutual exclusion."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._carts: dict[str, dict[LineId, CartLine]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, owner_key: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(owner_key, threading.Lock())

    @contextmanager
    def locked(self, owner: CartOwner) -> Iterator[CartUnitOfWork]:
        with self._lock_for(owner.key):
            lines = self._carts.setdefault(owner.key, {})
            yield _MemoryUnitOfWork(lines, self._clock)

    def list_lines(self, owner: CartOwner) -> list[CartLine]:
        lines = list(self._carts.get(owner.key, {}).values())
        return sorted(lines, key=lambda line: line.created_at, reverse=True)

    def stale_carts(self, cutoff: datetime) -> list[tuple[str, int]]:
        return [
            (key, len(lines))
            for key, lines in self._carts.items()
            if any(line.updated_at < cutoff for line in lines.values())
        ]

    def clear_cart(self, owner_key: str) -> int:
        with self._lock_for(owner_key):
            lines = self._carts.get(owner_key, {})
            count = len(lines)
            lines.clear()
            return count
