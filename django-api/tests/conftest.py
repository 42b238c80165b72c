"""Pytest configuration and shared fixtures."""

from zoneinfo import ZoneInfo

import pytest
from django.apps import apps
from rest_framework.test import APIClient

from catalog.stores.memory_store import MemoryCatalogStore
from common.identity import CartOwner
from common.ratelimit import RateLimitConfig, RateLimiter
from cart.pricing import FlatFeePolicy, PricingResolver
from cart.services import CartService
from cart.stores.memory_store import MemoryCartStore
from checkout.gateway import MockPaymentGateway
from checkout.notifier import TransactionStatusNotifier
from checkout.qr import QRCodec
from checkout.services import CheckoutService
from checkout.stores.memory_store import MemoryTransactionStore
from tests.factories import FakeClock, menu_item, ticket_item

TEST_QR_KEY = "0123456789abcdef0123456789abcdef"


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def fresh_process_services():
    """Give every test its own rate limiter and notifier."""
    common = apps.get_app_config("common")
    checkout = apps.get_app_config("checkout")
    saved = common.rate_limiter, checkout.notifier, checkout.gateway
    common.rate_limiter = RateLimiter(RateLimitConfig())
    checkout.notifier = TransactionStatusNotifier()
    checkout.gateway = MockPaymentGateway()
    yield
    common.rate_limiter, checkout.notifier, checkout.gateway = saved


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> MemoryCatalogStore:
    store = MemoryCatalogStore()
    store.add(ticket_item("T1", price="50", max_per_person=4))
    store.add(ticket_item("T2", club_id="club-2", price="30"))
    store.add(menu_item("M1", price="12"))
    store.add(menu_item("M2", price="8"))
    return store


@pytest.fixture
def resolver() -> PricingResolver:
    return PricingResolver(FlatFeePolicy("0"), ZoneInfo("America/Bogota"))


@pytest.fixture
def cart_store(clock) -> MemoryCartStore:
    return MemoryCartStore(clock)


@pytest.fixture
def cart_service(cart_store, catalog, resolver, clock) -> CartService:
    return CartService(cart_store, catalog, resolver, clock)


@pytest.fixture
def owner() -> CartOwner:
    return CartOwner(session_key="session-1")


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway()


@pytest.fixture
def transactions(clock) -> MemoryTransactionStore:
    return MemoryTransactionStore(clock)


@pytest.fixture
def qr_codec() -> QRCodec:
    return QRCodec(TEST_QR_KEY)


@pytest.fixture
def checkout_service(cart_service, transactions, gateway, qr_codec, clock) -> CheckoutService:
    return CheckoutService(cart_service, transactions, gateway, qr_codec, clock)
