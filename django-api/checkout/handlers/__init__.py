from checkout.handlers.views import (
    CheckoutSubmitView,
    PaymentWebhookView,
    TransactionStatusView,
    TransactionStreamView,
)

__all__ = [
    "CheckoutSubmitView",
    "PaymentWebhookView",
    "TransactionStatusView",
    "TransactionStreamView",
]
