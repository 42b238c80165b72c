"""Cart consistency guards.

These run inside the per-cart lock, against the lines read in the same unit
of work as the mutation they protect.
"""

from collections.abc import Sequence
from datetime import date

import structlog

from catalog.domain import CatalogItem, ItemType
from cart.domain import CartLine, PricedLine
from cart.domain.errors import ClubConflictError, DateConflictError, TicketMixConflictError

logger = structlog.get_logger(__name__)


def ensure_same_club(lines: Sequence[CartLine], club_id: str) -> None:
    """Reject ``club_id`` when the cart already holds another club's items."""
    for line in lines:
        if line.club_id != club_id:
            logger.info("club_conflict", current_club_id=line.club_id, requested_club_id=club_id)
            raise ClubConflictError(line.club_id)


def ensure_ticket_compatible(priced: Sequence[PricedLine], item: CatalogItem, on_date: date) -> None:
    """Ticket lines share one date, and event tickets never mix with other tickets.

    Event tickets may span several dates (multi-day events).
    """
    tickets = [p for p in priced if p.line.item_type is ItemType.TICKET]
    if item.is_event_ticket:
        if any(not p.is_event_ticket for p in tickets):
            raise TicketMixConflictError(
                "Cannot add event tickets when other ticket types are in cart. "
                "Please clear your cart first."
            )
        return

    if any(p.is_event_ticket for p in tickets):
        raise TicketMixConflictError(
            "Cannot add non-event tickets when event tickets are in cart. "
            "Event tickets have priority."
        )
    for p in tickets:
        if p.line.date != on_date:
            raise DateConflictError(p.line.date.isoformat())
