"""Django ORM models (persistence layer) for the sellable catalog.

These models handle database concerns. The cart reads them through
catalog/stores and works with catalog/domain objects.
"""

import uuid

from django.db import models


class Club(models.Model):
    """Persistence model for venues.

    ``open_days`` holds English weekday names ("Friday"). ``open_hours``
    holds ``{"day", "open", "close"}`` dicts with ``HH:MM`` times; a close
    time before the open time means the venue closes after midnight.
    """

    class MenuType(models.TextChoices):
        STRUCTURED = "structured"
        PDF = "pdf"
        NONE = "none"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    open_days = models.JSONField(default=list, blank=True)
    open_hours = models.JSONField(default=list, blank=True)
    menu_type = models.CharField(
        max_length=20, choices=MenuType.choices, default=MenuType.STRUCTURED
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Ticket(models.Model):
    """Persistence model for covers, event tickets and free tickets."""

    class Category(models.TextChoices):
        GENERAL = "general"
        EVENT = "event"
        FREE = "free"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    club = models.ForeignKey(Club, on_delete=models.CASCADE, related_name="tickets")
    name = models.CharField(max_length=255)
    category = models.CharField(
        max_length=20, choices=Category.choices, default=Category.GENERAL
    )
    price = models.DecimalField(max_digits=12, decimal_places=2)
    dynamic_pricing_enabled = models.BooleanField(default=False)
    max_per_person = models.PositiveIntegerField()
    quantity = models.PositiveIntegerField(null=True, blank=True)
    available_date = models.DateField(null=True, blank=True)
    event_start_time = models.TimeField(null=True, blank=True)
    includes_menu_item = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["club", "available_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} - {self.price}"


class MenuItem(models.Model):
    """Persistence model for menu items; priced directly or through variants."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    club = models.ForeignKey(Club, on_delete=models.CASCADE, related_name="menu_items")
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    has_variants = models.BooleanField(default=False)
    dynamic_pricing_enabled = models.BooleanField(default=False)
    max_per_person = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class MenuItemVariant(models.Model):
    """Persistence model for a priced variant of a menu item."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    menu_item = models.ForeignKey(
        MenuItem, on_delete=models.CASCADE, related_name="variants"
    )
    name = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    dynamic_pricing_enabled = models.BooleanField(default=False)
    max_per_person = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self) -> str:
        return f"{self.menu_item.name} - {self.name}"


class TicketIncludedMenuItem(models.Model):
    """Menu item (or variant) bundled with each unit of a ticket.

    Only read when the ticket has ``includes_menu_item`` set.
    """

    ticket = models.ForeignKey(
        Ticket, on_delete=models.CASCADE, related_name="included_menu_items"
    )
    menu_item = models.ForeignKey(MenuItem, on_delete=models.CASCADE)
    variant = models.ForeignKey(
        MenuItemVariant, on_delete=models.CASCADE, null=True, blank=True
    )
    quantity = models.PositiveIntegerField(default=1)

    def __str__(self) -> str:
        return f"{self.ticket.name}: {self.menu_item.name} x{self.quantity}"
