from django.apps import apps

from cart.services import build_cart_service
from checkout.qr import QRCodec
from checkout.services.checkout_service import CheckoutService
from checkout.stores.django_store import DjangoTransactionStore


def build_checkout_service() -> CheckoutService:
    """CheckoutService wired to the ORM stores and the process gateway."""
    return CheckoutService(
        build_cart_service(),
        DjangoTransactionStore(),
        apps.get_app_config("checkout").gateway,
        QRCodec.from_settings(),
    )


__all__ = ["CheckoutService", "build_checkout_service"]
