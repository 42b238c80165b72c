"""Pricing resolver: current unit prices for cart lines and cart totals.

Resolution is a pure function of the catalog items, the cart lines and the
instant passed in. Nothing is cached between calls.
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.conf import settings

from catalog.domain import CatalogItem, ItemType
from cart.domain import CartLine, CartSummary, Money, PricedLine
from cart.pricing import dynamic
from cart.pricing.fees import FeeBreakdown, ServiceFeePolicy, load_fee_policy


class PricingResolver:
    """Prices lines with dynamic rules and aggregates them with a fee policy."""

    def __init__(self, fee_policy: ServiceFeePolicy, tz: ZoneInfo) -> None:
        self._fee_policy = fee_policy
        self._tz = tz

    @classmethod
    def from_settings(cls) -> "PricingResolver":
        return cls(load_fee_policy(), ZoneInfo(settings.NIGHTLIFE.get("TIMEZONE", "UTC")))

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def quote(self, item: CatalogItem, line_date, now: datetime) -> dynamic.PriceQuote:
        return dynamic.quote(item, line_date, now, self._tz)

    def price_line(self, line: CartLine, item: CatalogItem | None, now: datetime) -> PricedLine:
        if item is None or not item.is_active:
            return PricedLine(
                line=line,
                name=item.name if item else "Unavailable item",
                unit_price=Money.zero(),
                subtotal=Money.zero(),
                max_per_person=item.max_per_person if item else None,
                available=False,
            )

        quote = self.quote(item, line.date, now)
        base = Money.of(item.base_price)
        if quote.multiplier is None:
            unit_price = Money.zero()
        else:
            unit_price = base.times(quote.multiplier)
            if quote.multiplier < 1 and unit_price.amount > base.amount:
                unit_price = base

        return PricedLine(
            line=line,
            name=item.name,
            unit_price=unit_price,
            subtotal=unit_price.times(line.quantity),
            max_per_person=item.max_per_person,
            dynamic_price=unit_price if quote.dynamic or quote.multiplier != Decimal("1") else None,
            available=quote.available,
            is_event_ticket=item.is_event_ticket,
        )

    def fees(self, priced: Sequence[PricedLine]) -> FeeBreakdown:
        ticket_subtotal, menu_subtotal = self._subtotals(priced)
        has_event_tickets = any(p.is_event_ticket for p in priced)
        return self._fee_policy.breakdown(ticket_subtotal, menu_subtotal, has_event_tickets)

    def summarize(self, priced: Sequence[PricedLine]) -> CartSummary:
        if not priced:
            return CartSummary.empty()
        ticket_subtotal, menu_subtotal = self._subtotals(priced)
        total_subtotal = ticket_subtotal + menu_subtotal
        operational_costs = self.fees(priced).total
        return CartSummary(
            ticket_subtotal=ticket_subtotal,
            menu_subtotal=menu_subtotal,
            total_subtotal=total_subtotal,
            operational_costs=operational_costs,
            actual_total=total_subtotal + operational_costs,
            item_count=sum(p.line.quantity for p in priced),
            line_count=len(priced),
        )

    @staticmethod
    def _subtotals(priced: Sequence[PricedLine]) -> tuple[Money, Money]:
        ticket_subtotal = Money.zero()
        menu_subtotal = Money.zero()
        for p in priced:
            if p.line.item_type is ItemType.TICKET:
                ticket_subtotal = ticket_subtotal + p.subtotal
            else:
                menu_subtotal = menu_subtotal + p.subtotal
        return ticket_subtotal, menu_subtotal
