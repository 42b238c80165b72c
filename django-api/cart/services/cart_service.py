"""Cart service - all cart business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Every mutation runs inside ``CartStore.locked`` so that the club-affinity
guard, the limit checks and the write see the same cart state.
"""

from collections.abc import Callable, Sequence
from datetime import date, datetime, timezone

import structlog

from catalog.domain import CatalogItem, ItemType
from catalog.stores import CatalogStore
from common.identity import CartOwner
from cart.domain import CartLine, CartSummary, LineId, PricedLine
from cart.domain.errors import (
    InvalidInputError,
    ItemNotFoundError,
    ItemUnavailableError,
    LimitExceededError,
    LineNotFoundError,
)
from cart.guards import ensure_same_club, ensure_ticket_compatible
from cart.pricing import PricingResolver
from cart.stores import CartStore, CartUnitOfWork

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartService:
    """Service for unified cart operations."""

    def __init__(
        self,
        store: CartStore,
        catalog: CatalogStore,
        resolver: PricingResolver,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._resolver = resolver
        self._clock = clock

    @property
    def store(self) -> CartStore:
        return self._store

    @property
    def catalog(self) -> CatalogStore:
        return self._catalog

    @property
    def resolver(self) -> PricingResolver:
        return self._resolver

    def now(self) -> datetime:
        return self._clock()

    def add_ticket(self, owner: CartOwner, ticket_id: str, on_date: date, quantity: int) -> PricedLine:
        """Add a ticket, merging with an existing line for the same ticket and date.

        Raises:
            InvalidInputError: quantity below 1, a past date, or a date the ticket is not sold for.
            ItemNotFoundError: the ticket does not exist or is inactive.
            ItemUnavailableError: the event is past its grace period.
            ClubConflictError: the cart holds another club's items.
            DateConflictError, TicketMixConflictError: ticket rules.
            LimitExceededError: the merged quantity exceeds max per person or stock.
        """
        self._require_positive(quantity)
        item = self._catalog.get_ticket(ticket_id)
        if item is None or not item.is_active:
            raise ItemNotFoundError("Ticket not found")
        if (item.is_free_ticket or item.is_event_ticket) and item.available_date is not None:
            if on_date != item.available_date:
                raise InvalidInputError(
                    f"This ticket is only available on {item.available_date.isoformat()}"
                )
        return self._add(owner, item, on_date, quantity)

    def add_menu(
        self,
        owner: CartOwner,
        menu_item_id: str,
        variant_id: str | None,
        on_date: date,
        quantity: int,
    ) -> PricedLine:
        """Add a menu item or one of its variants. Same failure modes as ``add_ticket``."""
        self._require_positive(quantity)
        item = self._catalog.get_menu_item(menu_item_id)
        if item is None or not item.is_active:
            raise ItemNotFoundError("Menu item not found")
        if item.has_variants and not variant_id:
            raise InvalidInputError("This menu item requires a variant")
        if not item.has_variants and variant_id:
            raise InvalidInputError("This menu item has no variants")
        if variant_id:
            item = self._catalog.get_menu_item(menu_item_id, variant_id)
            if item is None or not item.is_active:
                raise ItemNotFoundError("Menu item variant not found")
        return self._add(owner, item, on_date, quantity)

    def update_quantity(self, owner: CartOwner, line_id: str, quantity: int) -> PricedLine | None:
        """Set a line's quantity. Zero or less removes the line and returns None.

        Raises:
            LineNotFoundError: the line is not in the owner's cart.
            LimitExceededError: quantity exceeds max per person or stock.
        """
        key = self._parse_line_id(line_id)
        now = self._clock()
        with self._store.locked(owner) as uow:
            line = uow.get(key)
            if line is None:
                raise LineNotFoundError(line_id)
            return self._apply_quantity(owner, uow, line, quantity, now)

    def adjust_quantity(self, owner: CartOwner, line_id: str, delta: int) -> PricedLine | None:
        """Change a line's quantity by ``delta`` as one read-modify-write under the cart lock."""
        key = self._parse_line_id(line_id)
        now = self._clock()
        with self._store.locked(owner) as uow:
            line = uow.get(key)
            if line is None:
                raise LineNotFoundError(line_id)
            return self._apply_quantity(owner, uow, line, line.quantity + delta, now)

    def remove(self, owner: CartOwner, line_id: str) -> bool:
        """Remove a line. Removing a missing line succeeds and returns False."""
        try:
            key = LineId.from_string(line_id)
        except ValueError:
            return False
        with self._store.locked(owner) as uow:
            removed = uow.delete(key)
        if removed:
            logger.info("cart_item_removed", owner=owner.key, line_id=line_id)
        return removed

    def clear(self, owner: CartOwner) -> int:
        with self._store.locked(owner) as uow:
            removed = uow.delete_all()
        logger.info("cart_cleared", owner=owner.key, removed=removed)
        return removed

    def list_lines(self, owner: CartOwner) -> list[PricedLine]:
        """Lines priced at the current instant, newest first."""
        return self.price_lines(self._store.list_lines(owner), self._clock())

    def summary(self, owner: CartOwner) -> CartSummary:
        return self._resolver.summarize(self.list_lines(owner))

    def price_lines(self, lines: Sequence[CartLine], now: datetime) -> list[PricedLine]:
        return [self._resolver.price_line(line, self._item_for(line), now) for line in lines]

    def purge_stale(self, cutoff: datetime, dry_run: bool = False) -> list[tuple[str, int]]:
        """Clear every cart holding a line not updated since ``cutoff``.

        Returns (owner key, line count) for each cart found.
        """
        stale = self._store.stale_carts(cutoff)
        if not dry_run:
            for owner_key, _ in stale:
                self._store.clear_cart(owner_key)
                logger.info("stale_cart_cleared", owner=owner_key)
        return stale

    def _add(self, owner: CartOwner, item: CatalogItem, on_date: date, quantity: int) -> PricedLine:
        now = self._clock()
        # Dated tickets expire through their quote, which allows a grace period.
        if item.available_date is None and on_date < now.astimezone(self._resolver.tz).date():
            raise InvalidInputError("Date cannot be in the past")
        if not self._resolver.quote(item, on_date, now).available:
            raise ItemUnavailableError("This item is no longer available for purchase")

        with self._store.locked(owner) as uow:
            lines = uow.lines()
            ensure_same_club(lines, item.club_id)
            if item.item_type is ItemType.TICKET:
                ensure_ticket_compatible(self.price_lines(lines, now), item, on_date)

            key = (item.item_type, item.item_id, item.variant_id, on_date)
            existing = next((line for line in lines if line.merge_key == key), None)
            total = quantity + (existing.quantity if existing else 0)
            self._check_limits(item, total)

            if existing is not None:
                line = uow.set_quantity(existing.id, total)
            else:
                is_ticket = item.item_type is ItemType.TICKET
                line = uow.insert(
                    item_type=item.item_type,
                    club_id=item.club_id,
                    on_date=on_date,
                    quantity=total,
                    ticket_id=item.item_id if is_ticket else None,
                    menu_item_id=None if is_ticket else item.item_id,
                    variant_id=item.variant_id,
                )

        logger.info(
            "cart_item_added",
            owner=owner.key,
            item_type=item.item_type.value,
            item_id=item.item_id,
            variant_id=item.variant_id,
            quantity=line.quantity,
            merged=existing is not None,
        )
        return self._resolver.price_line(line, item, now)

    def _apply_quantity(
        self, owner: CartOwner, uow: CartUnitOfWork, line: CartLine, quantity: int, now: datetime
    ) -> PricedLine | None:
        if quantity <= 0:
            uow.delete(line.id)
            logger.info("cart_item_removed", owner=owner.key, line_id=str(line.id))
            return None
        item = self._item_for(line)
        if item is None or not item.is_active:
            raise ItemNotFoundError("Item no longer available")
        self._check_limits(item, quantity)
        updated = uow.set_quantity(line.id, quantity)
        logger.info("cart_item_updated", owner=owner.key, line_id=str(line.id), quantity=quantity)
        return self._resolver.price_line(updated, item, now)

    def _item_for(self, line: CartLine) -> CatalogItem | None:
        if line.item_type is ItemType.TICKET:
            return self._catalog.get_ticket(line.ticket_id)
        return self._catalog.get_menu_item(line.menu_item_id, line.variant_id)

    @staticmethod
    def _check_limits(item: CatalogItem, quantity: int) -> None:
        if item.max_per_person is not None and quantity > item.max_per_person:
            logger.info("limit_exceeded", item_id=item.item_id, limit=item.max_per_person)
            raise LimitExceededError(
                f"Maximum {item.max_per_person} per person", item.max_per_person
            )
        if item.stock is not None and quantity > item.stock:
            logger.info("stock_exceeded", item_id=item.item_id, stock=item.stock)
            raise LimitExceededError(f"Only {item.stock} available", item.stock)

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if quantity < 1:
            raise InvalidInputError("Quantity must be greater than 0")

    @staticmethod
    def _parse_line_id(line_id: str) -> LineId:
        try:
            return LineId.from_string(line_id)
        except ValueError:
            raise LineNotFoundError(line_id) from None
