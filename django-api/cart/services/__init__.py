from catalog.stores.django_store import DjangoCatalogStore
from cart.pricing import PricingResolver
from cart.services.cart_service import CartService
from cart.stores.django_store import DjangoCartStore


def build_cart_service() -> CartService:
    """CartService wired to the ORM stores and the configured pricing."""
    return CartService(DjangoCartStore(), DjangoCatalogStore(), PricingResolver.from_settings())


__all__ = ["CartService", "build_cart_service"]
