"""Integration tests for checkout, the payment webhook and the status stream."""

import hashlib
import hmac
import json
from datetime import datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from django.apps import apps
from django.core.exceptions import ImproperlyConfigured
from rest_framework.test import APIClient

from catalog.models import Club, MenuItem, Ticket, TicketIncludedMenuItem
from checkout.domain import TransactionStatus
from checkout.gateway import PaymentGateway
from checkout.models import PurchaseTransaction
from checkout.qr import QRCodec
from checkout.services import build_checkout_service

TOMORROW = (datetime.now(ZoneInfo("America/Bogota")) + timedelta(days=1)).date().isoformat()
WEBHOOK_SECRET = "s3cret"


@pytest.fixture(autouse=True)
def webhook_secret(settings):
    settings.NIGHTLIFE = {**settings.NIGHTLIFE, "WEBHOOK_SECRET": WEBHOOK_SECRET}


@pytest.fixture
def ticket() -> Ticket:
    club = Club.objects.create(name="Club One")
    return Ticket.objects.create(club=club, name="General", price=Decimal("50"), max_per_person=4)


@pytest.fixture
def filled_cart(api_client, ticket):
    response = api_client.post(
        "/unified-cart/add",
        {"itemType": "ticket", "ticketId": str(ticket.id), "date": TOMORROW, "quantity": 2},
        format="json",
    )
    assert response.status_code == 201
    return api_client


def submit(client, email="buyer@example.com"):
    return client.post("/api/checkout", {"email": email}, format="json")


def reference_of(transaction: dict) -> str:
    return PurchaseTransaction.objects.get(pk=transaction["id"]).reference


def sign(secret: str, reference: str, status: str) -> str:
    body = json.dumps({"reference": reference, "status": status}).encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def webhook(client, reference, status, secret=WEBHOOK_SECRET):
    """Post a gateway callback signed with ``secret``; None sends it unsigned."""
    body = json.dumps({"reference": reference, "status": status})
    extra = {"HTTP_X_SIGNATURE": sign(secret, reference, status)} if secret is not None else {}
    return client.post("/api/checkout/webhook", body, content_type="application/json", **extra)


class LivePaymentGateway(PaymentGateway):
    def authorize(self, transaction):
        raise NotImplementedError

    def fetch_status(self, reference):
        raise NotImplementedError


@pytest.mark.django_db
class TestCheckoutSubmit:
    """Tests for POST /api/checkout"""

    def test_creates_pending_transaction(self, filled_cart):
        """Submitting snapshots the cart into a PENDING transaction."""
        response = submit(filled_cart)
        assert response.status_code == 201
        transaction = response.json()["transaction"]
        assert transaction["status"] == "PENDING"
        assert transaction["provider"] == "mock"
        assert transaction["ticketSubtotal"] == "100.00"
        assert len(transaction["lines"]) == 1
        assert transaction["lines"][0]["quantity"] == 2
        assert reference_of(transaction).startswith("unified_")

    def test_reference_is_not_exposed(self, filled_cart):
        """The gateway reference signs webhooks, so responses never carry it."""
        transaction = submit(filled_cart).json()["transaction"]
        assert "reference" not in transaction
        body = filled_cart.get(f"/api/checkout/transaction/{transaction['id']}").json()
        assert "reference" not in body["transaction"]

    def test_cart_is_left_untouched(self, filled_cart):
        """Submitting does not clear the cart."""
        submit(filled_cart)
        assert len(filled_cart.get("/unified-cart").json()["items"]) == 1

    def test_empty_cart(self, api_client):
        """An empty cart cannot be checked out."""
        response = submit(api_client)
        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_CART"

    def test_invalid_email(self, filled_cart):
        """The buyer email is validated."""
        response = submit(filled_cart, email="not-an-email")
        assert response.status_code == 400
        assert "email" in response.json()["errors"]

    def test_gateway_failure(self, filled_cart):
        """A gateway outage returns 502 and leaves the transaction in ERROR."""
        apps.get_app_config("checkout").gateway.fail = True
        response = submit(filled_cart)
        assert response.status_code == 502
        assert response.json()["code"] == "UPSTREAM_FAILURE"
        assert PurchaseTransaction.objects.get().status == TransactionStatus.ERROR.value


@pytest.mark.django_db
class TestTransactionStatus:
    """Tests for GET /api/checkout/transaction/{id}"""

    def test_pending_has_no_purchases(self, filled_cart):
        transaction_id = submit(filled_cart).json()["transaction"]["id"]
        body = filled_cart.get(f"/api/checkout/transaction/{transaction_id}").json()
        assert body["transaction"]["status"] == "PENDING"
        assert "purchases" not in body

    def test_refresh_asks_gateway(self, filled_cart):
        """refresh=true applies the status reported by the gateway."""
        transaction = submit(filled_cart).json()["transaction"]
        apps.get_app_config("checkout").gateway.set_status(reference_of(transaction), TransactionStatus.APPROVED)
        body = filled_cart.get(f"/api/checkout/transaction/{transaction['id']}?refresh=true").json()
        assert body["transaction"]["status"] == "APPROVED"
        assert len(body["purchases"]) == 1

    def test_purchases_only_for_owner(self, filled_cart):
        """Another session sees the status of an approved transaction but not its QR codes."""
        transaction = submit(filled_cart).json()["transaction"]
        webhook(filled_cart, reference_of(transaction), "APPROVED")

        stranger = APIClient().get(f"/api/checkout/transaction/{transaction['id']}").json()
        assert stranger["transaction"]["status"] == "APPROVED"
        assert "purchases" not in stranger

        owner = filled_cart.get(f"/api/checkout/transaction/{transaction['id']}").json()
        assert len(owner["purchases"]) == 1

    def test_unknown_transaction(self, api_client):
        response = api_client.get("/api/checkout/transaction/not-a-uuid")
        assert response.status_code == 404
        assert response.json()["code"] == "TRANSACTION_NOT_FOUND"


@pytest.mark.django_db
class TestPaymentWebhook:
    """Tests for POST /api/checkout/webhook"""

    def test_approval_materializes_purchases(self, filled_cart):
        """An approval creates purchase records with decodable QR payloads."""
        transaction = submit(filled_cart).json()["transaction"]
        response = webhook(filled_cart, reference_of(transaction), "APPROVED")
        assert response.status_code == 200
        assert response.json() == {"success": True, "status": "APPROVED"}

        body = filled_cart.get(f"/api/checkout/transaction/{transaction['id']}").json()
        purchase = body["purchases"][0]
        payload = QRCodec.from_settings().decode(purchase["qrPayload"])
        assert payload.type == "ticket"
        assert payload.id == purchase["id"]

    def test_approval_adds_included_menu_items(self, filled_cart, ticket):
        """A ticket bundling a menu item yields a free menu purchase tied to the ticket purchase."""
        shot = MenuItem.objects.create(club=ticket.club, name="Welcome Shot", price=Decimal("10"))
        TicketIncludedMenuItem.objects.create(ticket=ticket, menu_item=shot, quantity=1)
        Ticket.objects.filter(pk=ticket.pk).update(includes_menu_item=True)

        transaction = submit(filled_cart).json()["transaction"]
        webhook(filled_cart, reference_of(transaction), "APPROVED")
        purchases = filled_cart.get(f"/api/checkout/transaction/{transaction['id']}").json()["purchases"]

        ticket_purchase = next(p for p in purchases if p["itemType"] == "ticket")
        included = next(p for p in purchases if p["itemType"] == "menu")
        assert len(purchases) == 2
        assert included["menuItemId"] == str(shot.id)
        assert included["quantity"] == 2
        assert included["subtotal"] == "0.00"
        assert included["sourcePurchaseId"] == ticket_purchase["id"]
        payload = QRCodec.from_settings().decode(included["qrPayload"])
        assert payload.type == "menu_from_ticket"
        assert payload.ticket_purchase_id == ticket_purchase["id"]

    def test_repeated_delivery_is_noop(self, filled_cart):
        """The same status delivered twice succeeds both times."""
        reference = reference_of(submit(filled_cart).json()["transaction"])
        assert webhook(filled_cart, reference, "DECLINED").status_code == 200
        assert webhook(filled_cart, reference, "DECLINED").status_code == 200

    def test_terminal_transition_rejected(self, filled_cart):
        """A settled transaction cannot change status."""
        reference = reference_of(submit(filled_cart).json()["transaction"])
        webhook(filled_cart, reference, "APPROVED")
        response = webhook(filled_cart, reference, "DECLINED")
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_TRANSITION"
        assert response.json()["status"] == "APPROVED"

    def test_unknown_reference(self, api_client):
        response = webhook(api_client, "unified_missing", "APPROVED")
        assert response.status_code == 404

    def test_bad_signature_rejected(self, filled_cart):
        """Unsigned and badly signed calls are rejected."""
        transaction = submit(filled_cart).json()["transaction"]
        reference = reference_of(transaction)

        assert webhook(filled_cart, reference, "APPROVED", secret=None).status_code == 403
        response = webhook(filled_cart, reference, "APPROVED", secret="other")
        assert response.json()["code"] == "INVALID_SIGNATURE"
        assert PurchaseTransaction.objects.get(pk=transaction["id"]).status == "PENDING"

        assert webhook(filled_cart, reference, "APPROVED").status_code == 200

    def test_rejected_without_configured_secret(self, filled_cart, settings):
        """With no secret configured nothing can be verified, so every call is refused."""
        settings.NIGHTLIFE = {**settings.NIGHTLIFE, "WEBHOOK_SECRET": ""}
        transaction = submit(filled_cart).json()["transaction"]

        response = webhook(filled_cart, reference_of(transaction), "APPROVED", secret=None)
        assert response.status_code == 403
        assert response.json()["code"] == "INVALID_SIGNATURE"
        assert PurchaseTransaction.objects.get(pk=transaction["id"]).status == "PENDING"

    def test_real_gateway_requires_secret(self, settings):
        """Startup refuses a real gateway without a webhook secret."""
        settings.NIGHTLIFE = {
            **settings.NIGHTLIFE,
            "PAYMENT_GATEWAY": "tests.test_checkout_api.LivePaymentGateway",
            "WEBHOOK_SECRET": "",
        }
        with pytest.raises(ImproperlyConfigured):
            apps.get_app_config("checkout").ready()


def read_frames(response) -> list[dict]:
    raw = b"".join(response.streaming_content).decode()
    return [json.loads(chunk[len("data: "):]) for chunk in raw.split("\n\n") if chunk]


@pytest.mark.django_db
class TestTransactionStream:
    """Tests for GET /api/sse/transaction/{id}"""

    def test_streams_until_terminal(self, filled_cart):
        """The stream sends connected, the current status, then each change."""
        transaction = submit(filled_cart).json()["transaction"]
        response = filled_cart.get(f"/api/sse/transaction/{transaction['id']}")
        assert response["Content-Type"] == "text/event-stream"

        webhook(filled_cart, reference_of(transaction), "APPROVED")
        frames = read_frames(response)

        assert [f["type"] for f in frames] == ["connected", "status_update", "status_update"]
        assert [f.get("status") for f in frames[1:]] == ["PENDING", "APPROVED"]
        assert apps.get_app_config("checkout").notifier.subscriber_count(transaction["id"]) == 0

    def test_transition_while_connecting_is_seen(self, filled_cart, monkeypatch):
        """A transition landing while the stream connects still reaches the client."""
        transaction = submit(filled_cart).json()["transaction"]
        notifier = apps.get_app_config("checkout").notifier
        original = notifier.subscribe

        def subscribe_after_approval(transaction_id):
            build_checkout_service().apply_status(transaction_id, TransactionStatus.APPROVED)
            return original(transaction_id)

        monkeypatch.setattr(notifier, "subscribe", subscribe_after_approval)
        frames = read_frames(filled_cart.get(f"/api/sse/transaction/{transaction['id']}"))

        assert [f["type"] for f in frames] == ["connected", "status_update"]
        assert frames[1]["status"] == "APPROVED"

    def test_terminal_transaction_closes_immediately(self, filled_cart):
        transaction = submit(filled_cart).json()["transaction"]
        webhook(filled_cart, reference_of(transaction), "DECLINED")
        frames = read_frames(filled_cart.get(f"/api/sse/transaction/{transaction['id']}"))
        assert [f["type"] for f in frames] == ["connected", "status_update"]
        assert frames[1]["status"] == "DECLINED"

    def test_ping_while_idle(self, filled_cart, settings):
        """Idle periods produce pings."""
        settings.NIGHTLIFE = {**settings.NIGHTLIFE, "SSE_PING_SECONDS": 0.01}
        transaction = submit(filled_cart).json()["transaction"]
        response = filled_cart.get(f"/api/sse/transaction/{transaction['id']}")
        content = iter(response.streaming_content)
        next(content)
        next(content)
        assert json.loads(next(content).decode()[len("data: "):])["type"] == "ping"
        response.close()

    def test_unknown_transaction(self, api_client):
        response = api_client.get("/api/sse/transaction/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["code"] == "TRANSACTION_NOT_FOUND"
        assert apps.get_app_config("checkout").notifier.subscriber_count(
            "00000000-0000-0000-0000-000000000000"
        ) == 0

    def test_malformed_id(self, api_client):
        response = api_client.get("/api/sse/transaction/not-a-uuid")
        assert response.status_code == 404
