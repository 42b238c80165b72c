"""Dynamic pricing rules.

All schedule math happens in the venue time zone. Multipliers:

Covers (general tickets), relative to the selected date's opening:
    open now                      -> base
    closed that weekday           -> 30% off
    more than 3h before opening   -> 30% off
    2h to 3h before opening       -> 10% off
    otherwise                     -> base

Menu items, relative to today's opening:
    closed weekday or after hours -> 30% off
    open now                      -> base
    more than 3h before opening   -> 30% off
    less than 3h before opening   -> 10% off

Event tickets, by whole hours until the event starts:
    48h or more                   -> 30% off
    24h to 48h                    -> base
    0h to 24h                     -> 20% surcharge
    grace period after start      -> 30% surcharge
    past the grace period         -> not sellable
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from catalog.domain import CatalogItem, ClubSchedule, ItemType, OpeningHours

COVER_3H_PLUS = Decimal("0.7")
COVER_2_3H = Decimal("0.9")

MENU_CLOSED = Decimal("0.7")
MENU_3H_PLUS = Decimal("0.7")
MENU_LESS_3H = Decimal("0.9")

EVENT_48H_PLUS = Decimal("0.7")
EVENT_24_48H = Decimal("1.0")
EVENT_LESS_24H = Decimal("1.2")
EVENT_GRACE = Decimal("1.3")
EVENT_GRACE_HOURS = 3
FREE_TICKET_GRACE_HOURS = 1

BASE = Decimal("1")


@dataclass(frozen=True)
class PriceQuote:
    """Multiplier applied to a base price and why.

    ``multiplier`` is None when the item can no longer be sold.
    """

    multiplier: Decimal | None
    reason: str
    dynamic: bool = False

    @property
    def available(self) -> bool:
        return self.multiplier is not None


def weekday_name(day: date) -> str:
    return day.strftime("%A")


def opening_window(day: date, hours: OpeningHours, tz: ZoneInfo) -> tuple[datetime, datetime]:
    opens = datetime.combine(day, hours.open, tzinfo=tz)
    closes = datetime.combine(day, hours.close, tzinfo=tz)
    if closes <= opens:
        closes += timedelta(days=1)
    return opens, closes


def _window_for(schedule: ClubSchedule, day: date, tz: ZoneInfo) -> tuple[datetime, datetime] | None:
    name = weekday_name(day)
    if not schedule.is_open_on(name):
        return None
    hours = schedule.hours_for(name)
    if hours is None:
        return None
    return opening_window(day, hours, tz)


def _minutes_between(later: datetime, earlier: datetime) -> int:
    return round((later - earlier).total_seconds() / 60)


def _hours_until(start: datetime, now: datetime) -> int:
    return math.floor((start - now).total_seconds() / 3600)


def cover_quote(schedule: ClubSchedule, on_date: date, now: datetime, tz: ZoneInfo) -> PriceQuote:
    window = _window_for(schedule, on_date, tz)
    if window is None:
        return PriceQuote(COVER_3H_PLUS, "covers_closed_next_open_30_off", dynamic=True)
    opens, closes = window
    if opens <= now < closes:
        return PriceQuote(BASE, "covers_open_hours_base", dynamic=True)
    minutes = _minutes_between(opens, now)
    if minutes > 180:
        return PriceQuote(COVER_3H_PLUS, "covers_preopen_3h_plus_30_off", dynamic=True)
    if minutes > 120:
        return PriceQuote(COVER_2_3H, "covers_preopen_2_3h_10_off", dynamic=True)
    if minutes >= 0:
        return PriceQuote(BASE, "covers_preopen_lt2h_base", dynamic=True)
    return PriceQuote(BASE, "covers_open_hours_base", dynamic=True)


def menu_quote(schedule: ClubSchedule, now: datetime, tz: ZoneInfo) -> PriceQuote:
    local_now = now.astimezone(tz)
    yesterday = _window_for(schedule, local_now.date() - timedelta(days=1), tz)
    if yesterday is not None and yesterday[0] <= now < yesterday[1]:
        return PriceQuote(BASE, "menu_open_hours_base", dynamic=True)

    window = _window_for(schedule, local_now.date(), tz)
    if window is None:
        return PriceQuote(MENU_CLOSED, "menu_closed_day_30_off", dynamic=True)
    opens, closes = window
    if opens <= now < closes:
        return PriceQuote(BASE, "menu_open_hours_base", dynamic=True)
    minutes = _minutes_between(opens, now)
    if minutes > 180:
        return PriceQuote(MENU_3H_PLUS, "menu_preopen_3h_plus_30_off", dynamic=True)
    if minutes > 0:
        return PriceQuote(MENU_LESS_3H, "menu_preopen_lt3h_10_off", dynamic=True)
    return PriceQuote(MENU_CLOSED, "menu_closed_day_30_off", dynamic=True)


def event_start(event_date: date, start: time | None, tz: ZoneInfo) -> datetime:
    return datetime.combine(event_date, start or time(0, 0), tzinfo=tz)


def event_ticket_quote(
    event_date: date,
    start: time | None,
    now: datetime,
    tz: ZoneInfo,
    dynamic_enabled: bool,
) -> PriceQuote:
    hours = _hours_until(event_start(event_date, start, tz), now)
    if hours < -EVENT_GRACE_HOURS:
        return PriceQuote(None, "event_expired")
    if hours < 0:
        return PriceQuote(EVENT_GRACE, "event_grace_period", dynamic=True)
    if not dynamic_enabled:
        return PriceQuote(BASE, "ticket_dp_disabled_base")
    if hours >= 48:
        return PriceQuote(EVENT_48H_PLUS, "event_48_plus", dynamic=True)
    if hours >= 24:
        return PriceQuote(EVENT_24_48H, "event_24_48", dynamic=True)
    return PriceQuote(EVENT_LESS_24H, "event_less_24", dynamic=True)


def free_ticket_quote(event_date: date | None, start: time | None, now: datetime, tz: ZoneInfo) -> PriceQuote:
    if event_date is not None:
        hours = _hours_until(event_start(event_date, start, tz), now)
        if hours < -FREE_TICKET_GRACE_HOURS:
            return PriceQuote(None, "free_ticket_expired")
    return PriceQuote(Decimal("0"), "free_ticket_no_dp")


def quote(item: CatalogItem, line_date: date, now: datetime, tz: ZoneInfo) -> PriceQuote:
    """Pick the rule that applies to ``item`` sold for ``line_date``."""
    if item.item_type is ItemType.TICKET:
        if item.is_free_ticket:
            return free_ticket_quote(item.available_date, item.event_start, now, tz)
        if item.is_event_ticket and item.available_date is not None:
            return event_ticket_quote(
                item.available_date, item.event_start, now, tz, item.dynamic_pricing_enabled
            )
        if item.dynamic_pricing_enabled:
            return cover_quote(item.schedule, line_date, now, tz)
        return PriceQuote(BASE, "ticket_dp_disabled_base")

    if item.has_variants and item.variant_id is None:
        return PriceQuote(BASE, "menu_parent_has_variants_no_dp")
    if not item.dynamic_pricing_enabled:
        return PriceQuote(BASE, "menu_dp_disabled_base")
    return menu_quote(item.schedule, now, tz)
