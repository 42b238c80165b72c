from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


class CheckoutConfig(AppConfig):
    name = "checkout"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self) -> None:
        from checkout import signals  # noqa: F401
        from checkout.gateway import MockPaymentGateway, load_gateway
        from checkout.notifier import TransactionStatusNotifier

        self.notifier = TransactionStatusNotifier()
        self.gateway = load_gateway()
        if not isinstance(self.gateway, MockPaymentGateway) and not settings.NIGHTLIFE.get("WEBHOOK_SECRET"):
            raise ImproperlyConfigured("NIGHTLIFE_WEBHOOK_SECRET is required with a real payment gateway")
