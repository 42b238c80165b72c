"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in checkout/domain.
"""

import uuid

from django.db import models

MONEY = {"max_digits": 12, "decimal_places": 2}


class PurchaseTransaction(models.Model):
    """Persistence model for a checkout transaction and its snapshot totals."""

    class Status(models.TextChoices):
        PENDING = "PENDING"
        APPROVED = "APPROVED"
        DECLINED = "DECLINED"
        VOIDED = "VOIDED"
        ERROR = "ERROR"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_key = models.CharField(max_length=80, db_index=True)
    buyer_email = models.EmailField()
    customer = models.JSONField(default=dict, blank=True)
    club_id = models.CharField(max_length=64)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    ticket_subtotal = models.DecimalField(**MONEY)
    menu_subtotal = models.DecimalField(**MONEY)
    total_subtotal = models.DecimalField(**MONEY)
    operational_costs = models.DecimalField(**MONEY)
    actual_total = models.DecimalField(**MONEY)
    provider = models.CharField(max_length=32, null=True, blank=True)
    reference = models.CharField(max_length=128, null=True, blank=True, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"


class TransactionLineItem(models.Model):
    """Snapshot of one priced cart line."""

    transaction = models.ForeignKey(
        PurchaseTransaction, on_delete=models.CASCADE, related_name="lines"
    )
    position = models.PositiveIntegerField()
    item_type = models.CharField(max_length=10)
    club_id = models.CharField(max_length=64)
    date = models.DateField()
    name = models.CharField(max_length=255)
    unit_price = models.DecimalField(**MONEY)
    quantity = models.PositiveIntegerField()
    subtotal = models.DecimalField(**MONEY)
    ticket_id = models.CharField(max_length=64, null=True, blank=True)
    menu_item_id = models.CharField(max_length=64, null=True, blank=True)
    variant_id = models.CharField(max_length=64, null=True, blank=True)

    class Meta:
        ordering = ["position"]


class PurchaseRecord(models.Model):
    """A purchased line materialized on approval."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transaction = models.ForeignKey(
        PurchaseTransaction, on_delete=models.CASCADE, related_name="purchases"
    )
    item_type = models.CharField(max_length=10)
    club_id = models.CharField(max_length=64)
    date = models.DateField()
    name = models.CharField(max_length=255)
    unit_price = models.DecimalField(**MONEY)
    quantity = models.PositiveIntegerField()
    subtotal = models.DecimalField(**MONEY)
    ticket_id = models.CharField(max_length=64, null=True, blank=True)
    menu_item_id = models.CharField(max_length=64, null=True, blank=True)
    variant_id = models.CharField(max_length=64, null=True, blank=True)
    qr_payload = models.TextField(null=True, blank=True)
    source_purchase = models.ForeignKey(
        "self", on_delete=models.CASCADE, null=True, blank=True, related_name="included_items"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity}"
