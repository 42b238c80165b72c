"""Serializers for checkout requests and transaction responses."""

from rest_framework import serializers

from cart.handlers.serializers import MoneyField
from checkout.domain import TransactionStatus


class CheckoutRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    customer = serializers.DictField(required=False, default=dict)


class WebhookSerializer(serializers.Serializer):
    reference = serializers.CharField()
    status = serializers.ChoiceField(choices=[s.value for s in TransactionStatus])


class TransactionLineSerializer(serializers.Serializer):
    itemType = serializers.CharField(source="item_type.value")
    ticketId = serializers.CharField(source="ticket_id", allow_null=True)
    menuItemId = serializers.CharField(source="menu_item_id", allow_null=True)
    variantId = serializers.CharField(source="variant_id", allow_null=True)
    clubId = serializers.CharField(source="club_id")
    date = serializers.DateField()
    name = serializers.CharField()
    unitPrice = MoneyField(source="unit_price")
    quantity = serializers.IntegerField()
    subtotal = MoneyField()


class PurchaseRecordSerializer(serializers.Serializer):
    id = serializers.CharField()
    itemType = serializers.CharField(source="item_type.value")
    clubId = serializers.CharField(source="club_id")
    date = serializers.DateField()
    ticketId = serializers.CharField(source="ticket_id", allow_null=True)
    menuItemId = serializers.CharField(source="menu_item_id", allow_null=True)
    variantId = serializers.CharField(source="variant_id", allow_null=True)
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    subtotal = MoneyField()
    qrPayload = serializers.CharField(source="qr_payload", allow_null=True)
    sourcePurchaseId = serializers.CharField(source="source_purchase_id", allow_null=True)


class TransactionSerializer(serializers.Serializer):
    """Serializer for Transaction domain model."""

    id = serializers.CharField()
    status = serializers.CharField(source="status.value")
    clubId = serializers.CharField(source="club_id")
    buyerEmail = serializers.EmailField(source="buyer_email")
    provider = serializers.CharField(allow_null=True)
    lines = TransactionLineSerializer(many=True)
    ticketSubtotal = MoneyField(source="ticket_subtotal")
    menuSubtotal = MoneyField(source="menu_subtotal")
    totalSubtotal = MoneyField(source="total_subtotal")
    operationalCosts = MoneyField(source="operational_costs")
    actualTotal = MoneyField(source="actual_total")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")
