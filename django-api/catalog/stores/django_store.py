"""Django ORM implementation of the CatalogStore."""

from datetime import time
from decimal import Decimal

from django.core.exceptions import ValidationError

from catalog import models
from catalog.domain import (
    CatalogItem,
    ClubSchedule,
    IncludedMenuItem,
    ItemType,
    OpeningHours,
    TicketCategory,
)
from catalog.stores.interfaces import CatalogStore


def _parse_time(value: str) -> time:
    hour, minute = value.strip().split(":")[:2]
    return time(int(hour), int(minute))


def schedule_from_club(club: models.Club) -> ClubSchedule:
    hours = tuple(
        OpeningHours(day=entry["day"], open=_parse_time(entry["open"]), close=_parse_time(entry["close"]))
        for entry in club.open_hours or []
    )
    return ClubSchedule(open_days=tuple(club.open_days or ()), hours=hours)


def _included_menu_items(ticket: models.Ticket) -> tuple[IncludedMenuItem, ...]:
    if not ticket.includes_menu_item:
        return ()
    rows = ticket.included_menu_items.select_related("menu_item", "variant").order_by("pk")
    return tuple(
        IncludedMenuItem(
            menu_item_id=str(row.menu_item_id),
            name=f"{row.menu_item.name} - {row.variant.name}" if row.variant else row.menu_item.name,
            quantity=row.quantity,
            variant_id=str(row.variant_id) if row.variant_id else None,
        )
        for row in rows
    )


class DjangoCatalogStore(CatalogStore):
    """Catalog reads backed by Django ORM. Every call hits the database."""

    def get_ticket(self, ticket_id: str) -> CatalogItem | None:
        try:
            ticket = models.Ticket.objects.select_related("club").get(pk=ticket_id)
        except (models.Ticket.DoesNotExist, ValidationError):
            return None
        return CatalogItem(
            item_type=ItemType.TICKET,
            item_id=str(ticket.pk),
            club_id=str(ticket.club_id),
            name=ticket.name,
            base_price=ticket.price,
            dynamic_pricing_enabled=ticket.dynamic_pricing_enabled,
            max_per_person=ticket.max_per_person,
            schedule=schedule_from_club(ticket.club),
            is_active=ticket.is_active,
            category=TicketCategory(ticket.category),
            stock=ticket.quantity,
            available_date=ticket.available_date,
            event_start=ticket.event_start_time,
            included_menu_items=_included_menu_items(ticket),
        )

    def get_menu_item(self, menu_item_id: str, variant_id: str | None = None) -> CatalogItem | None:
        try:
            item = models.MenuItem.objects.select_related("club").get(pk=menu_item_id)
        except (models.MenuItem.DoesNotExist, ValidationError):
            return None
        schedule = schedule_from_club(item.club)

        if variant_id is None:
            return CatalogItem(
                item_type=ItemType.MENU,
                item_id=str(item.pk),
                club_id=str(item.club_id),
                name=item.name,
                base_price=item.price if item.price is not None else Decimal("0"),
                dynamic_pricing_enabled=item.dynamic_pricing_enabled and not item.has_variants,
                max_per_person=item.max_per_person,
                schedule=schedule,
                is_active=item.is_active and item.club.menu_type == models.Club.MenuType.STRUCTURED,
                has_variants=item.has_variants,
            )

        try:
            variant = item.variants.get(pk=variant_id)
        except (models.MenuItemVariant.DoesNotExist, ValidationError):
            return None
        return CatalogItem(
            item_type=ItemType.MENU,
            item_id=str(item.pk),
            variant_id=str(variant.pk),
            club_id=str(item.club_id),
            name=f"{item.name} - {variant.name}",
            base_price=variant.price,
            dynamic_pricing_enabled=variant.dynamic_pricing_enabled,
            max_per_person=variant.max_per_person or item.max_per_person,
            schedule=schedule,
            is_active=(
                item.is_active
                and variant.is_active
                and item.club.menu_type == models.Club.MenuType.STRUCTURED
            ),
            has_variants=item.has_variants,
        )
