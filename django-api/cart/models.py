"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in cart/domain.
The ``Cart`` row is the per-owner lock row taken with SELECT ... FOR UPDATE.
"""

import uuid

from django.db import models

from catalog.models import MenuItem, MenuItemVariant, Ticket


class Cart(models.Model):
    """One cart per user or anonymous session."""

    owner_key = models.CharField(max_length=80, unique=True)
    user_id = models.CharField(max_length=64, null=True, blank=True)
    session_key = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.owner_key


class CartItem(models.Model):
    """Persistence model for a cart line."""

    class ItemType(models.TextChoices):
        TICKET = "ticket"
        MENU = "menu"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    club_id = models.CharField(max_length=64)
    item_type = models.CharField(max_length=10, choices=ItemType.choices)
    ticket = models.ForeignKey(Ticket, on_delete=models.CASCADE, null=True, blank=True)
    menu_item = models.ForeignKey(MenuItem, on_delete=models.CASCADE, null=True, blank=True)
    variant = models.ForeignKey(
        MenuItemVariant, on_delete=models.CASCADE, null=True, blank=True
    )
    date = models.DateField()
    quantity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["cart", "-created_at"]),
            models.Index(fields=["updated_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1), name="cart_item_quantity_positive"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.item_type} x{self.quantity} ({self.date})"
