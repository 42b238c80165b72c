from catalog.domain.models import (
    CatalogItem,
    ClubSchedule,
    IncludedMenuItem,
    ItemType,
    OpeningHours,
    TicketCategory,
)

__all__ = [
    "CatalogItem",
    "ClubSchedule",
    "IncludedMenuItem",
    "ItemType",
    "OpeningHours",
    "TicketCategory",
]
