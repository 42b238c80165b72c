"""Service fee ("operational costs") policies.

The active policy is configured with ``NIGHTLIFE["SERVICE_FEE"]``:
``POLICY`` is a dotted path to a ``ServiceFeePolicy`` subclass and
``OPTIONS`` are passed to its constructor.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.utils.module_loading import import_string

from cart.domain.value_objects import Money


@dataclass(frozen=True)
class FeeBreakdown:
    """Fee components added on top of the item subtotal."""

    platform_fee: Money
    gateway_fee: Money
    gateway_tax: Money

    @property
    def total(self) -> Money:
        return self.platform_fee + self.gateway_fee + self.gateway_tax

    @classmethod
    def none(cls) -> "FeeBreakdown":
        return cls(Money.zero(), Money.zero(), Money.zero())


class ServiceFeePolicy(ABC):
    """Computes the service fee for a priced cart."""

    def breakdown(
        self, ticket_subtotal: Money, menu_subtotal: Money, has_event_tickets: bool
    ) -> FeeBreakdown:
        """Return the fee components. A zero subtotal never carries a fee."""
        if ticket_subtotal.amount + menu_subtotal.amount == 0:
            return FeeBreakdown.none()
        return self._breakdown(ticket_subtotal, menu_subtotal, has_event_tickets)

    @abstractmethod
    def _breakdown(
        self, ticket_subtotal: Money, menu_subtotal: Money, has_event_tickets: bool
    ) -> FeeBreakdown:
        ...


class PlatformFeePolicy(ServiceFeePolicy):
    """Platform commission plus payment gateway fee and its tax.

    commission = tickets * ticket_rate (event_ticket_rate with event tickets)
                 + menu * menu_rate
    gateway    = (subtotal + commission) * gateway_rate + gateway_fixed
    tax        = gateway * gateway_tax_rate
    """

    def __init__(
        self,
        ticket_rate: Decimal | str = "0.05",
        event_ticket_rate: Decimal | str = "0.10",
        menu_rate: Decimal | str = "0.025",
        gateway_rate: Decimal | str = "0.0265",
        gateway_fixed: Decimal | str = "700",
        gateway_tax_rate: Decimal | str = "0.19",
    ) -> None:
        self.ticket_rate = Decimal(str(ticket_rate))
        self.event_ticket_rate = Decimal(str(event_ticket_rate))
        self.menu_rate = Decimal(str(menu_rate))
        self.gateway_rate = Decimal(str(gateway_rate))
        self.gateway_fixed = Decimal(str(gateway_fixed))
        self.gateway_tax_rate = Decimal(str(gateway_tax_rate))

    def _breakdown(
        self, ticket_subtotal: Money, menu_subtotal: Money, has_event_tickets: bool
    ) -> FeeBreakdown:
        ticket_rate = self.event_ticket_rate if has_event_tickets else self.ticket_rate
        commission = ticket_subtotal.amount * ticket_rate + menu_subtotal.amount * self.menu_rate
        subtotal = ticket_subtotal.amount + menu_subtotal.amount
        gateway = (subtotal + commission) * self.gateway_rate + self.gateway_fixed
        tax = gateway * self.gateway_tax_rate
        return FeeBreakdown(Money.of(commission), Money.of(gateway), Money.of(tax))


class PercentageFeePolicy(ServiceFeePolicy):
    """A single percentage of the subtotal."""

    def __init__(self, rate: Decimal | str = "0.05") -> None:
        self.rate = Decimal(str(rate))

    def _breakdown(
        self, ticket_subtotal: Money, menu_subtotal: Money, has_event_tickets: bool
    ) -> FeeBreakdown:
        subtotal = ticket_subtotal.amount + menu_subtotal.amount
        return FeeBreakdown(Money.of(subtotal * self.rate), Money.zero(), Money.zero())


class FlatFeePolicy(ServiceFeePolicy):
    """The same fee for every non-empty, non-free cart."""

    def __init__(self, amount: Decimal | str = "0") -> None:
        self.amount = Money.of(Decimal(str(amount)))

    def _breakdown(
        self, ticket_subtotal: Money, menu_subtotal: Money, has_event_tickets: bool
    ) -> FeeBreakdown:
        return FeeBreakdown(self.amount, Money.zero(), Money.zero())


def load_fee_policy() -> ServiceFeePolicy:
    config = settings.NIGHTLIFE.get("SERVICE_FEE", {})
    policy_class = import_string(config.get("POLICY", "cart.pricing.fees.PlatformFeePolicy"))
    return policy_class(**config.get("OPTIONS", {}))
