"""Serializers for cart requests and responses.

Input serializers check request shape only. Responses use camelCase keys
and money as decimal strings.
"""

from rest_framework import serializers

from catalog.domain import ItemType


class MoneyField(serializers.Field):
    """Serializes ``Money`` as a two-decimal string, None stays None."""

    def to_representation(self, value):
        return str(value) if value is not None else None


class AddToCartSerializer(serializers.Serializer):
    itemType = serializers.ChoiceField(choices=[t.value for t in ItemType])
    ticketId = serializers.CharField(required=False)
    menuItemId = serializers.CharField(required=False)
    variantId = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    date = serializers.DateField()
    quantity = serializers.IntegerField()

    def validate(self, attrs):
        if attrs["itemType"] == ItemType.TICKET.value:
            if not attrs.get("ticketId"):
                raise serializers.ValidationError({"ticketId": "This field is required."})
            if attrs.get("menuItemId"):
                raise serializers.ValidationError(
                    {"menuItemId": "Not allowed for ticket items."}
                )
        else:
            if not attrs.get("menuItemId"):
                raise serializers.ValidationError({"menuItemId": "This field is required."})
            if attrs.get("ticketId"):
                raise serializers.ValidationError({"ticketId": "Not allowed for menu items."})
        return attrs


class UpdateQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


class CartLineSerializer(serializers.Serializer):
    """Serializer for PricedLine domain model."""

    id = serializers.CharField(source="line.id")
    itemType = serializers.CharField(source="line.item_type.value")
    ticketId = serializers.CharField(source="line.ticket_id", allow_null=True)
    menuItemId = serializers.CharField(source="line.menu_item_id", allow_null=True)
    variantId = serializers.CharField(source="line.variant_id", allow_null=True)
    clubId = serializers.CharField(source="line.club_id")
    date = serializers.DateField(source="line.date")
    quantity = serializers.IntegerField(source="line.quantity")
    name = serializers.CharField()
    unitPrice = MoneyField(source="unit_price")
    subtotal = MoneyField()
    dynamicPrice = MoneyField(source="dynamic_price")
    maxPerPerson = serializers.IntegerField(source="max_per_person", allow_null=True)
    available = serializers.BooleanField()
    createdAt = serializers.DateTimeField(source="line.created_at")
    updatedAt = serializers.DateTimeField(source="line.updated_at")


class CartSummarySerializer(serializers.Serializer):
    """Serializer for CartSummary domain model."""

    ticketSubtotal = MoneyField(source="ticket_subtotal")
    menuSubtotal = MoneyField(source="menu_subtotal")
    totalSubtotal = MoneyField(source="total_subtotal")
    operationalCosts = MoneyField(source="operational_costs")
    actualTotal = MoneyField(source="actual_total")
    itemCount = serializers.IntegerField(source="item_count")
    lineCount = serializers.IntegerField(source="line_count")
