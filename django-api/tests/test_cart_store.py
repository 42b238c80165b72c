"""Tests for the Django cart store under concurrent writers.

Run with: pytest tests/test_cart_store.py -v
"""

import threading
from datetime import datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from django.db import connection

from catalog.models import Club, Ticket
from common.identity import CartOwner
from cart.services import build_cart_service

TOMORROW = (datetime.now(ZoneInfo("America/Bogota")) + timedelta(days=1)).date()


@pytest.mark.django_db(transaction=True)
class TestDjangoCartStoreConcurrency:
    """Per-cart locking with real database connections."""

    def test_concurrent_increments_are_not_lost(self):
        """Concurrent +1 adjustments on one line all apply."""
        club = Club.objects.create(name="Club One")
        ticket = Ticket.objects.create(club=club, name="General", price=Decimal("50"), max_per_person=100)
        owner = CartOwner(session_key="session-concurrent")
        line = build_cart_service().add_ticket(owner, str(ticket.id), TOMORROW, 1)
        barrier = threading.Barrier(4)
        errors = []

        def bump():
            service = build_cart_service()
            try:
                barrier.wait()
                for _ in range(3):
                    service.adjust_quantity(owner, str(line.line.id), 1)
            except Exception as exc:
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        [current] = build_cart_service().list_lines(owner)
        assert current.line.quantity == 13

    def test_concurrent_adds_from_two_clubs(self):
        """Only one club wins when two clubs race into an empty cart."""
        tickets = [
            Ticket.objects.create(
                club=Club.objects.create(name=name), name="General", price=Decimal("30"), max_per_person=4
            )
            for name in ("Club One", "Club Two")
        ]
        owner = CartOwner(session_key="session-race")
        barrier = threading.Barrier(2)
        outcomes = []

        def add(ticket):
            try:
                barrier.wait()
                build_cart_service().add_ticket(owner, str(ticket.id), TOMORROW, 1)
                outcomes.append("added")
            except Exception as exc:
                outcomes.append(type(exc).__name__)
            finally:
                connection.close()

        threads = [threading.Thread(target=add, args=(t,)) for t in tickets]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(outcomes) == ["ClubConflictError", "added"]
        assert len({p.line.club_id for p in build_cart_service().list_lines(owner)}) == 1
