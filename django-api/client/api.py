"""HTTP client for the unified cart and checkout endpoints."""

from datetime import date

import requests
import structlog

from client.errors import SchemaValidationError, UpstreamFailureError, error_from_body
from client.schemas import CartLine, CartSummary, Transaction, parse, parse_many

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 15


class CartApiClient:
    """Thin wrapper over a ``requests.Session`` that keeps the cart session cookie."""

    def __init__(self, base_url: str, session: requests.Session | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def add_ticket(self, ticket_id: str, on_date: date, quantity: int) -> CartLine:
        body = self._request(
            "POST",
            "/unified-cart/add",
            json={"itemType": "ticket", "ticketId": ticket_id, "date": on_date.isoformat(), "quantity": quantity},
        )
        return parse(CartLine, body.get("item"))

    def add_menu(self, menu_item_id: str, on_date: date, quantity: int, variant_id: str | None = None) -> CartLine:
        payload = {"itemType": "menu", "menuItemId": menu_item_id, "date": on_date.isoformat(), "quantity": quantity}
        if variant_id:
            payload["variantId"] = variant_id
        body = self._request("POST", "/unified-cart/add", json=payload)
        return parse(CartLine, body.get("item"))

    def update_quantity(self, line_id: str, quantity: int) -> CartLine | None:
        """Returns None when the update removed the line."""
        body = self._request("PATCH", f"/unified-cart/line/{line_id}", json={"quantity": quantity})
        if body.get("removed"):
            return None
        return parse(CartLine, body.get("item"))

    def remove(self, line_id: str) -> bool:
        return bool(self._request("DELETE", f"/unified-cart/line/{line_id}").get("removed"))

    def list_lines(self) -> list[CartLine]:
        return parse_many(CartLine, self._request("GET", "/unified-cart").get("items"))

    def summary(self) -> CartSummary:
        return parse(CartSummary, self._request("GET", "/unified-cart/summary"))

    def clear(self) -> int:
        return int(self._request("DELETE", "/unified-cart/clear").get("removed", 0))

    def checkout(self, email: str, customer: dict | None = None) -> Transaction:
        body = self._request("POST", "/api/checkout", json={"email": email, "customer": customer or {}})
        return parse(Transaction, body.get("transaction"))

    def get_transaction(self, transaction_id: str, refresh: bool = False) -> Transaction:
        params = {"refresh": "true"} if refresh else None
        body = self._request("GET", f"/api/checkout/transaction/{transaction_id}", params=params)
        return parse(Transaction, body.get("transaction"))

    def open_stream(self, transaction_id: str) -> requests.Response:
        """Open the SSE stream. The caller iterates and closes the response."""
        url = f"{self.base_url}/api/sse/transaction/{transaction_id}"
        try:
            response = self.session.get(
                url, stream=True, timeout=(self.timeout, None), headers={"Accept": "text/event-stream"}
            )
        except requests.RequestException as exc:
            raise UpstreamFailureError(f"Could not open status stream: {exc}") from exc
        if response.status_code >= 400:
            error = self._error(response)
            response.close()
            raise error
        return response

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("cart_api_unreachable", method=method, path=path, error=str(exc))
            raise UpstreamFailureError("Cart service unreachable, please retry") from exc
        if response.status_code >= 400:
            raise self._error(response)
        return self._json(response)

    @staticmethod
    def _json(response: requests.Response) -> dict:
        try:
            body = response.json()
        except ValueError as exc:
            raise SchemaValidationError("Response is not JSON", code="SCHEMA_VALIDATION") from exc
        if not isinstance(body, dict):
            raise SchemaValidationError("Response is not a JSON object", code="SCHEMA_VALIDATION")
        return body

    @classmethod
    def _error(cls, response: requests.Response):
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        error = error_from_body(response.status_code, body)
        logger.info("cart_api_error", status=response.status_code, code=error.code)
        return error
