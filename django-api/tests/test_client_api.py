"""Tests for the HTTP cart client against mocked responses."""

from datetime import date
from decimal import Decimal

import pytest
import requests
import responses
from responses import matchers

from client.api import CartApiClient
from client.errors import (
    CartClientError,
    ClubConflictError,
    LimitExceededError,
    NotFoundError,
    RateLimitedError,
    SchemaValidationError,
    UpstreamFailureError,
)
from tests.client_payloads import LINE_ID, line_payload, summary_payload, transaction_payload

BASE = "http://cart.test"


@pytest.fixture
def api() -> CartApiClient:
    return CartApiClient(BASE + "/")


class TestCartCalls:
    """Tests for cart requests and response parsing."""

    @responses.activate
    def test_add_ticket(self, api):
        """add_ticket posts the camelCase body and parses the line."""
        responses.post(
            f"{BASE}/unified-cart/add",
            json={"success": True, "item": line_payload(), "message": "Item added to cart"},
            status=201,
            match=[
                matchers.json_params_matcher(
                    {"itemType": "ticket", "ticketId": "T1", "date": "2026-03-13", "quantity": 2}
                )
            ],
        )
        line = api.add_ticket("T1", date(2026, 3, 13), 2)
        assert line.id == LINE_ID
        assert line.unit_price == Decimal("50.00")
        assert line.max_per_person == 4

    @responses.activate
    def test_add_menu_with_variant(self, api):
        responses.post(
            f"{BASE}/unified-cart/add",
            json={"success": True, "item": line_payload(itemType="menu", ticketId=None, menuItemId="M1", variantId="V1")},
            status=201,
            match=[
                matchers.json_params_matcher(
                    {"itemType": "menu", "menuItemId": "M1", "variantId": "V1", "date": "2026-03-13", "quantity": 1}
                )
            ],
        )
        line = api.add_menu("M1", date(2026, 3, 13), 1, variant_id="V1")
        assert line.variant_id == "V1"

    @responses.activate
    def test_update_quantity_removed(self, api):
        """A removal answer yields None."""
        responses.patch(f"{BASE}/unified-cart/line/{LINE_ID}", json={"success": True, "removed": True})
        assert api.update_quantity(LINE_ID, 0) is None

    @responses.activate
    def test_list_and_summary(self, api):
        responses.get(f"{BASE}/unified-cart", json={"success": True, "items": [line_payload()]})
        responses.get(f"{BASE}/unified-cart/summary", json={"success": True, **summary_payload()})
        assert [line.id for line in api.list_lines()] == [LINE_ID]
        assert api.summary().item_count == 2

    @responses.activate
    def test_remove_and_clear(self, api):
        responses.delete(f"{BASE}/unified-cart/line/{LINE_ID}", json={"success": True, "removed": False})
        responses.delete(f"{BASE}/unified-cart/clear", json={"success": True, "removed": 3})
        assert api.remove(LINE_ID) is False
        assert api.clear() == 3

    @responses.activate
    def test_checkout_and_transaction(self, api):
        responses.post(f"{BASE}/api/checkout", json={"success": True, "transaction": transaction_payload()}, status=201)
        responses.get(
            f"{BASE}/api/checkout/transaction/{transaction_payload()['id']}",
            json={"success": True, "transaction": transaction_payload("APPROVED")},
            match=[matchers.query_param_matcher({"refresh": "true"})],
        )
        transaction = api.checkout("buyer@example.com")
        assert transaction.status == "PENDING"
        assert not transaction.is_terminal
        assert api.get_transaction(transaction.id, refresh=True).is_terminal


class TestErrors:
    """Tests for mapping error bodies to exceptions."""

    @responses.activate
    def test_club_conflict(self, api):
        responses.post(
            f"{BASE}/unified-cart/add",
            json={"success": False, "code": "CLUB_CONFLICT", "message": "All items in cart must be from the same club", "clubId": "club-1"},
            status=409,
        )
        with pytest.raises(ClubConflictError) as exc_info:
            api.add_ticket("T2", date(2026, 3, 13), 1)
        assert exc_info.value.club_id == "club-1"
        assert exc_info.value.status == 409

    @responses.activate
    def test_limit_exceeded(self, api):
        responses.patch(
            f"{BASE}/unified-cart/line/{LINE_ID}",
            json={"success": False, "code": "LIMIT_EXCEEDED", "message": "Maximum 4 per person", "limit": 4},
            status=422,
        )
        with pytest.raises(LimitExceededError) as exc_info:
            api.update_quantity(LINE_ID, 9)
        assert exc_info.value.limit == 4

    @responses.activate
    def test_rate_limited(self, api):
        responses.delete(
            f"{BASE}/unified-cart/clear",
            json={"success": False, "code": "RATE_LIMITED", "message": "Too many requests", "retryAfter": 7},
            status=429,
        )
        with pytest.raises(RateLimitedError) as exc_info:
            api.clear()
        assert exc_info.value.retry_after == 7

    @responses.activate
    def test_not_found(self, api):
        responses.patch(
            f"{BASE}/unified-cart/line/missing",
            json={"success": False, "code": "LINE_NOT_FOUND", "message": "Cart line not found"},
            status=404,
        )
        with pytest.raises(NotFoundError):
            api.update_quantity("missing", 1)

    @responses.activate
    def test_non_json_server_error(self, api):
        """A 5xx without a JSON body is an upstream failure."""
        responses.get(f"{BASE}/unified-cart", body="<html>bad gateway</html>", status=502)
        with pytest.raises(UpstreamFailureError):
            api.list_lines()

    @responses.activate
    def test_unknown_client_error(self, api):
        responses.post(
            f"{BASE}/unified-cart/add",
            json={"success": False, "code": "DATE_CONFLICT", "message": "Cart already has tickets for another date"},
            status=409,
        )
        with pytest.raises(CartClientError) as exc_info:
            api.add_ticket("T1", date(2026, 3, 14), 1)
        assert exc_info.value.code == "DATE_CONFLICT"

    @responses.activate
    def test_connection_error(self, api):
        responses.get(f"{BASE}/unified-cart", body=requests.ConnectionError("refused"))
        with pytest.raises(UpstreamFailureError):
            api.list_lines()

    @responses.activate
    def test_malformed_line(self, api):
        """A line without an id fails schema validation."""
        bad = line_payload()
        del bad["id"]
        responses.get(f"{BASE}/unified-cart", json={"success": True, "items": [bad]})
        with pytest.raises(SchemaValidationError):
            api.list_lines()

    @responses.activate
    def test_items_not_a_list(self, api):
        responses.get(f"{BASE}/unified-cart", json={"success": True, "items": None})
        with pytest.raises(SchemaValidationError):
            api.list_lines()


class TestOpenStream:
    """Tests for opening the status stream."""

    @responses.activate
    def test_unknown_transaction(self, api):
        responses.get(
            f"{BASE}/api/sse/transaction/missing",
            json={"success": False, "code": "TRANSACTION_NOT_FOUND", "message": "Transaction not found"},
            status=404,
        )
        with pytest.raises(NotFoundError):
            api.open_stream("missing")

    @responses.activate
    def test_returns_streaming_response(self, api):
        responses.get(
            f"{BASE}/api/sse/transaction/abc",
            body='data: {"type": "connected"}\n\n',
            content_type="text/event-stream",
        )
        response = api.open_stream("abc")
        assert list(response.iter_lines(decode_unicode=True))[0] == 'data: {"type": "connected"}'
        response.close()
