from django.urls import path

from checkout.handlers import (
    CheckoutSubmitView,
    PaymentWebhookView,
    TransactionStatusView,
    TransactionStreamView,
)

urlpatterns = [
    path("checkout", CheckoutSubmitView.as_view(), name="checkout-submit"),
    path("checkout/webhook", PaymentWebhookView.as_view(), name="checkout-webhook"),
    path(
        "checkout/transaction/<str:transaction_id>",
        TransactionStatusView.as_view(),
        name="checkout-transaction",
    ),
    path(
        "sse/transaction/<str:transaction_id>",
        TransactionStreamView.as_view(),
        name="transaction-stream",
    ),
]
