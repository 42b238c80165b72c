"""Payment gateway interface.

The active gateway is a dotted path in ``NIGHTLIFE["PAYMENT_GATEWAY"]``,
instantiated once per process by ``CheckoutConfig.ready``.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from django.conf import settings
from django.utils.module_loading import import_string

from checkout.domain import Transaction, TransactionStatus


class GatewayError(Exception):
    """The gateway could not be reached or rejected the request."""


@dataclass(frozen=True)
class GatewayResult:
    reference: str
    status: TransactionStatus


class PaymentGateway(ABC):
    provider: str = "gateway"

    @abstractmethod
    def authorize(self, transaction: Transaction) -> GatewayResult:
        """Register the transaction with the processor and return its reference."""
        ...

    @abstractmethod
    def fetch_status(self, reference: str) -> TransactionStatus:
        ...


class MockPaymentGateway(PaymentGateway):
    """Accepts every transaction as PENDING and reports statuses set with ``set_status``.

    ``outcome`` makes ``authorize`` settle immediately; ``fail`` makes every
    call raise ``GatewayError``.
    """

    provider = "mock"

    def __init__(
        self, outcome: TransactionStatus = TransactionStatus.PENDING, fail: bool = False
    ) -> None:
        self.outcome = outcome
        self.fail = fail
        self._statuses: dict[str, TransactionStatus] = {}
        self._lock = threading.Lock()

    def authorize(self, transaction: Transaction) -> GatewayResult:
        if self.fail:
            raise GatewayError("mock gateway unavailable")
        reference = f"unified_{transaction.id.hex}"
        with self._lock:
            self._statuses[reference] = self.outcome
        return GatewayResult(reference=reference, status=self.outcome)

    def fetch_status(self, reference: str) -> TransactionStatus:
        if self.fail:
            raise GatewayError("mock gateway unavailable")
        with self._lock:
            try:
                return self._statuses[reference]
            except KeyError:
                raise GatewayError(f"unknown reference {reference}") from None

    def set_status(self, reference: str, status: TransactionStatus) -> None:
        with self._lock:
            self._statuses[reference] = status


def load_gateway() -> PaymentGateway:
    return import_string(settings.NIGHTLIFE.get("PAYMENT_GATEWAY", "checkout.gateway.MockPaymentGateway"))()
