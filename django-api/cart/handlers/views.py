"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Leave domain error mapping to ``common.exceptions``
- Never contain business logic
"""

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from catalog.domain import ItemType
from common.identity import resolve_owner
from common.throttling import CartRateThrottle
from cart.handlers.serializers import (
    AddToCartSerializer,
    CartLineSerializer,
    CartSummarySerializer,
    UpdateQuantitySerializer,
)
from cart.services import CartService, build_cart_service


class CartView(APIView):
    """Base view resolving the cart service and owner per request."""

    def get_service(self) -> CartService:
        return build_cart_service()


class CartAddView(CartView):
    """Handler for POST /unified-cart/add"""

    throttle_classes = [CartRateThrottle]

    def post(self, request: Request) -> Response:
        serializer = AddToCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        owner = resolve_owner(request)
        service = self.get_service()

        if data["itemType"] == ItemType.TICKET.value:
            line = service.add_ticket(owner, data["ticketId"], data["date"], data["quantity"])
        else:
            line = service.add_menu(
                owner,
                data["menuItemId"],
                data.get("variantId") or None,
                data["date"],
                data["quantity"],
            )
        return Response(
            {
                "success": True,
                "item": CartLineSerializer(line).data,
                "message": "Item added to cart",
            },
            status=status.HTTP_201_CREATED,
        )


class CartLineView(CartView):
    """Handler for PATCH and DELETE /unified-cart/line/{line_id}"""

    throttle_classes = [CartRateThrottle]

    def patch(self, request: Request, line_id: str) -> Response:
        serializer = UpdateQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = self.get_service().update_quantity(
            resolve_owner(request), line_id, serializer.validated_data["quantity"]
        )
        if line is None:
            return Response({"success": True, "removed": True})
        return Response({"success": True, "item": CartLineSerializer(line).data})

    def delete(self, request: Request, line_id: str) -> Response:
        removed = self.get_service().remove(resolve_owner(request), line_id)
        return Response({"success": True, "removed": removed})


class CartListView(CartView):
    """Handler for GET /unified-cart"""

    def get(self, request: Request) -> Response:
        lines = self.get_service().list_lines(resolve_owner(request))
        return Response({"success": True, "items": CartLineSerializer(lines, many=True).data})


class CartSummaryView(CartView):
    """Handler for GET /unified-cart/summary"""

    def get(self, request: Request) -> Response:
        summary = self.get_service().summary(resolve_owner(request))
        return Response({"success": True, **CartSummarySerializer(summary).data})


class CartClearView(CartView):
    """Handler for DELETE /unified-cart/clear"""

    throttle_classes = [CartRateThrottle]

    def delete(self, request: Request) -> Response:
        removed = self.get_service().clear(resolve_owner(request))
        return Response({"success": True, "removed": removed})
