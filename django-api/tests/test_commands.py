"""Tests for the clear_old_carts management command."""

from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from cart.models import Cart, CartItem
from catalog.models import Club, Ticket


@pytest.fixture
def ticket() -> Ticket:
    club = Club.objects.create(name="Club One")
    return Ticket.objects.create(club=club, name="General", price=Decimal("50"), max_per_person=4)


def cart_with_line(owner_key: str, ticket: Ticket, minutes_old: int) -> Cart:
    cart = Cart.objects.create(owner_key=owner_key, session_key=owner_key.split(":")[-1])
    item = CartItem.objects.create(
        cart=cart,
        club_id=str(ticket.club_id),
        item_type=CartItem.ItemType.TICKET,
        ticket=ticket,
        date=date(2026, 3, 13),
        quantity=1,
    )
    # auto_now only applies on save(), so backdate with update().
    CartItem.objects.filter(pk=item.pk).update(updated_at=timezone.now() - timedelta(minutes=minutes_old))
    return cart


def run(*args) -> str:
    out = StringIO()
    call_command("clear_old_carts", *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
class TestClearOldCarts:
    def test_clears_only_stale_carts(self, ticket):
        """Carts idle past the window are emptied; fresh ones are kept."""
        cart_with_line("session:old", ticket, minutes_old=45)
        cart_with_line("session:fresh", ticket, minutes_old=5)

        output = run("--minutes", "30")

        assert "Cleared session:old (1 lines)" in output
        assert "Cleared 1 cart(s)" in output
        assert not CartItem.objects.filter(cart__owner_key="session:old").exists()
        assert CartItem.objects.filter(cart__owner_key="session:fresh").count() == 1

    def test_dry_run_keeps_lines(self, ticket):
        cart_with_line("session:old", ticket, minutes_old=45)
        output = run("--dry-run")
        assert "Would clear session:old (1 lines)" in output
        assert CartItem.objects.count() == 1

    def test_nothing_to_clear(self):
        assert "Cleared 0 cart(s)" in run()

    def test_rejects_zero_minutes(self):
        with pytest.raises(CommandError):
            run("--minutes", "0")
