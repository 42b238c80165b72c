"""Django ORM implementation of the CartStore.

``locked`` runs the unit of work inside ``transaction.atomic()`` holding
``SELECT ... FOR UPDATE`` on the owner's ``Cart`` row, so every mutation of
one cart is serialized across processes sharing the database.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime

from django.db import transaction
from django.db.models import Count

from catalog.domain import ItemType
from common.identity import CartOwner
from cart.domain import CartLine, LineId
from cart.models import Cart, CartItem
from cart.stores.interfaces import CartStore, CartUnitOfWork


def _to_domain(row: CartItem) -> CartLine:
    return CartLine(
        id=LineId(row.id),
        item_type=ItemType(row.item_type),
        date=row.date,
        club_id=row.club_id,
        quantity=row.quantity,
        created_at=row.created_at,
        updated_at=row.updated_at,
        ticket_id=str(row.ticket_id) if row.ticket_id else None,
        menu_item_id=str(row.menu_item_id) if row.menu_item_id else None,
        variant_id=str(row.variant_id) if row.variant_id else None,
    )


class _DjangoUnitOfWork(CartUnitOfWork):
    def __init__(self, cart: Cart) -> None:
        self._cart = cart

    def lines(self) -> list[CartLine]:
        return [_to_domain(row) for row in self._cart.items.order_by("-created_at")]

    def get(self, line_id: LineId) -> CartLine | None:
        row = self._cart.items.filter(pk=line_id.value).first()
        return _to_domain(row) if row else None

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
        row = CartItem.objects.create(
            cart=self._cart,
            item_type=item_type.value,
            club_id=club_id,
            date=on_date,
            quantity=quantity,
            ticket_id=ticket_id,
            menu_item_id=menu_item_id,
            variant_id=variant_id,
        )
        self._touch()
        return _to_domain(row)

    def set_quantity(self, line_id: LineId, quantity: int) -> CartLine:
        row = self._cart.items.get(pk=line_id.value)
        row.quantity = quantity
        row.save(update_fields=["quantity", "updated_at"])
        self._touch()
        return _to_domain(row)

    def delete(self, line_id: LineId) -> bool:
        deleted, _ = self._cart.items.filter(pk=line_id.value).delete()
        if deleted:
            self._touch()
        return bool(deleted)

    def delete_all(self) -> int:
        deleted, _ = self._cart.items.all().delete()
        self._touch()
        return deleted

    def _touch(self) -> None:
        self._cart.save(update_fields=["updated_at"])


class DjangoCartStore(CartStore):
    """Cart store backed by Django ORM."""

    @contextmanager
    def locked(self, owner: CartOwner) -> Iterator[CartUnitOfWork]:
        with transaction.atomic():
            Cart.objects.get_or_create(
                owner_key=owner.key,
                defaults={"user_id": owner.user_id, "session_key": owner.session_key},
            )
            cart = Cart.objects.select_for_update().get(owner_key=owner.key)
            yield _DjangoUnitOfWork(cart)

    def list_lines(self, owner: CartOwner) -> list[CartLine]:
        rows = CartItem.objects.filter(cart__owner_key=owner.key).order_by("-created_at")
        return [_to_domain(row) for row in rows]

    def stale_carts(self, cutoff: datetime) -> list[tuple[str, int]]:
        stale = Cart.objects.filter(items__updated_at__lt=cutoff).values("pk")
        rows = (
            Cart.objects.filter(pk__in=stale)
            .annotate(lines=Count("items"))
            .order_by("updated_at")
            .values_list("owner_key", "lines")
        )
        return list(rows)

    def clear_cart(self, owner_key: str) -> int:
        with transaction.atomic():
            cart = Cart.objects.select_for_update().filter(owner_key=owner_key).first()
            if cart is None:
                return 0
            deleted, _ = cart.items.all().delete()
            return deleted
