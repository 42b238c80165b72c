"""HTTP handlers for checkout, gateway webhooks and the status stream."""

import hashlib
import hmac
import json
import uuid

import structlog
from django.apps import apps
from django.conf import settings
from django.http import HttpRequest, JsonResponse, StreamingHttpResponse
from django.views import View
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from common.errors import DomainError
from common.exceptions import STATUS_BY_CODE, error_body
from common.identity import resolve_owner
from common.throttling import CartRateThrottle
from checkout.domain import TransactionStatus
from checkout.domain.errors import InvalidSignatureError, TransactionNotFoundError
from checkout.handlers.serializers import (
    CheckoutRequestSerializer,
    PurchaseRecordSerializer,
    TransactionSerializer,
    WebhookSerializer,
)
from checkout.notifier import connected_message, error_message, ping_message, status_message
from checkout.services import CheckoutService, build_checkout_service

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "HTTP_X_SIGNATURE"


class CheckoutView(APIView):
    def get_service(self) -> CheckoutService:
        return build_checkout_service()


class CheckoutSubmitView(CheckoutView):
    """Handler for POST /api/checkout"""

    throttle_classes = [CartRateThrottle]

    def post(self, request: Request) -> Response:
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        transaction = self.get_service().submit(
            resolve_owner(request),
            serializer.validated_data["email"],
            serializer.validated_data["customer"],
        )
        return Response(
            {"success": True, "transaction": TransactionSerializer(transaction).data},
            status=status.HTTP_201_CREATED,
        )


class TransactionStatusView(CheckoutView):
    """Handler for GET /api/checkout/transaction/{transaction_id}

    ``?refresh=true`` asks the gateway about a pending transaction first.
    Purchase records and their QR credentials are only returned to the
    owner of the transaction.
    """

    def get(self, request: Request, transaction_id: str) -> Response:
        service = self.get_service()
        if request.query_params.get("refresh") in ("1", "true"):
            transaction = service.refresh_status(transaction_id)
        else:
            transaction = service.get(transaction_id)
        body = {"success": True, "transaction": TransactionSerializer(transaction).data}
        if (
            transaction.status is TransactionStatus.APPROVED
            and resolve_owner(request).key == transaction.owner_key
        ):
            body["purchases"] = PurchaseRecordSerializer(
                service.purchases(transaction.id), many=True
            ).data
        return Response(body)


class PaymentWebhookView(CheckoutView):
    """Handler for POST /api/checkout/webhook

    The raw body must be signed with HMAC-SHA256 using ``WEBHOOK_SECRET``,
    hex encoded in the ``X-Signature`` header. Without a configured secret
    every notification is rejected.
    """

    authentication_classes = []

    def post(self, request: Request) -> Response:
        self._verify_signature(request)
        serializer = WebhookSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        transaction = self.get_service().apply_status_by_reference(
            serializer.validated_data["reference"],
            TransactionStatus(serializer.validated_data["status"]),
        )
        return Response({"success": True, "status": transaction.status.value})

    @staticmethod
    def _verify_signature(request: Request) -> None:
        secret = settings.NIGHTLIFE.get("WEBHOOK_SECRET")
        if not secret:
            logger.error("webhook_secret_missing")
            raise InvalidSignatureError()
        expected = hmac.new(secret.encode(), request.body, hashlib.sha256).hexdigest()
        received = request.META.get(SIGNATURE_HEADER, "").lower()
        if not hmac.compare_digest(expected, received):
            logger.warning("webhook_invalid_signature")
            raise InvalidSignatureError()


def sse_frame(message: dict) -> str:
    return f"data: {json.dumps(message)}\n\n"


class TransactionStreamView(View):
    """Handler for GET /api/sse/transaction/{transaction_id}

    Sends ``connected``, then the current status, then every transition
    until a terminal status. Idle periods are filled with pings.
    """

    def get_service(self) -> CheckoutService:
        return build_checkout_service()

    def get(self, request: HttpRequest, transaction_id: str):
        notifier = apps.get_app_config("checkout").notifier
        try:
            key = str(uuid.UUID(transaction_id))
        except ValueError:
            return self._error(TransactionNotFoundError(transaction_id))

        # Subscribe before reading the current status so no transition falls in between.
        subscription = notifier.subscribe(key)
        try:
            transaction = self.get_service().get(key)
        except DomainError as exc:
            subscription.close()
            return self._error(exc)
        except Exception:
            subscription.close()
            raise

        response = StreamingHttpResponse(
            self._events(subscription, transaction), content_type="text/event-stream"
        )
        response["Cache-Control"] = "no-cache"
        response["X-Accel-Buffering"] = "no"
        return response

    @staticmethod
    def _error(exc: DomainError) -> JsonResponse:
        return JsonResponse(
            error_body(exc.code, exc.message, **exc.extra), status=STATUS_BY_CODE[exc.code]
        )

    def _events(self, subscription, transaction):
        ping_seconds = settings.NIGHTLIFE.get("SSE_PING_SECONDS", 30)
        try:
            yield sse_frame(connected_message())
            yield sse_frame(status_message(transaction))
            if transaction.status.is_terminal:
                return
            while True:
                message = subscription.get(timeout=ping_seconds)
                if message is None:
                    yield sse_frame(ping_message())
                    continue
                yield sse_frame(message)
                if message.get("type") == "error":
                    return
                if message.get("type") == "status_update" and TransactionStatus(message["status"]).is_terminal:
                    return
        except Exception:
            logger.exception("sse_stream_failed", transaction_id=subscription.transaction_id)
            yield sse_frame(error_message(subscription.transaction_id, "Internal stream error"))
        finally:
            subscription.close()
