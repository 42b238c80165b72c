"""Catalog items and a controllable clock for service-level tests."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from catalog.domain import CatalogItem, ClubSchedule, ItemType, OpeningHours, TicketCategory

BOGOTA = ZoneInfo("America/Bogota")

# A Tuesday afternoon in Bogota.
FIXED_NOW = datetime(2026, 3, 10, 15, 0, tzinfo=BOGOTA)

CLUB_1 = "club-1"
CLUB_2 = "club-2"

NIGHT_SCHEDULE = ClubSchedule(
    open_days=("Friday", "Saturday"),
    hours=(
        OpeningHours(day="Friday", open=time(22, 0), close=time(3, 0)),
        OpeningHours(day="Saturday", open=time(22, 0), close=time(3, 0)),
    ),
)


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def ticket_item(
    item_id: str = "T1",
    club_id: str = CLUB_1,
    price: str = "50",
    max_per_person: int | None = 4,
    category: TicketCategory = TicketCategory.GENERAL,
    available_date: date | None = None,
    event_start: time | None = None,
    stock: int | None = None,
    dynamic: bool = False,
    schedule: ClubSchedule = ClubSchedule(),
    **kwargs,
) -> CatalogItem:
    return CatalogItem(
        item_type=ItemType.TICKET,
        item_id=item_id,
        club_id=club_id,
        name=f"Ticket {item_id}",
        base_price=Decimal(price),
        dynamic_pricing_enabled=dynamic,
        max_per_person=max_per_person,
        schedule=schedule,
        category=category,
        stock=stock,
        available_date=available_date,
        event_start=event_start,
        **kwargs,
    )


def menu_item(
    item_id: str = "M1",
    club_id: str = CLUB_1,
    price: str = "12",
    max_per_person: int | None = None,
    variant_id: str | None = None,
    has_variants: bool = False,
    dynamic: bool = False,
    schedule: ClubSchedule = ClubSchedule(),
    **kwargs,
) -> CatalogItem:
    return CatalogItem(
        item_type=ItemType.MENU,
        item_id=item_id,
        club_id=club_id,
        name=f"Menu {item_id}" + (f" - {variant_id}" if variant_id else ""),
        base_price=Decimal(price),
        dynamic_pricing_enabled=dynamic,
        max_per_person=max_per_person,
        schedule=schedule,
        variant_id=variant_id,
        has_variants=has_variants,
        **kwargs,
    )
