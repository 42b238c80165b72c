"""Client-side cart state.

Mirrors the server cart and derives the view models a UI needs. Mutations
move through ``IDLE -> SUBMITTING -> SUCCESS | ERROR``; a mutation started
while another is SUBMITTING raises ``BusyError`` instead of racing it.
"""

import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum

import structlog

from client.api import CartApiClient
from client.errors import BusyError, CartClientError, ClubConflictError
from client.schemas import CartLine, CartSummary

logger = structlog.get_logger(__name__)

DEFAULT_MAX_AGE_MINUTES = 30


class SubmitStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class CartAge:
    is_old: bool
    age_minutes: int
    oldest: datetime | None = None
    newest: datetime | None = None


def format_age(minutes: int) -> str:
    if minutes < 1:
        return "less than a minute"
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'}"
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return f"{hours} hour{'' if hours == 1 else 's'}"
    return f"{hours}h {rest}m"


def age_warning(age: CartAge) -> str:
    if not age.is_old:
        return ""
    return (
        f"Your cart is {format_age(age.age_minutes)} old. Prices may have changed. "
        "Continue to checkout or clear the cart to see current prices?"
    )


class CartStateStore:
    """Local mirror of one owner's cart backed by a ``CartApiClient``."""

    def __init__(self, api: CartApiClient, clock: Callable[[], datetime] | None = None) -> None:
        self.api = api
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._listeners: list[Callable[["CartStateStore"], None]] = []
        self.lines: list[CartLine] = []
        self.summary: CartSummary | None = None
        self.status = SubmitStatus.IDLE
        self.error: Exception | None = None
        self.conflict_club_id: str | None = None
        self._clear_pending = False

    def subscribe(self, listener: Callable[["CartStateStore"], None]) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def refresh(self) -> None:
        self.lines = self.api.list_lines()
        self.summary = self.api.summary()
        self._notify()

    def add_ticket(self, ticket_id: str, on_date: date, quantity: int = 1) -> CartLine:
        return self._submit(lambda: self.api.add_ticket(ticket_id, on_date, quantity))

    def add_menu(self, menu_item_id: str, on_date: date, quantity: int = 1, variant_id: str | None = None) -> CartLine:
        return self._submit(lambda: self.api.add_menu(menu_item_id, on_date, quantity, variant_id))

    def update_quantity(self, line_id: str, quantity: int) -> CartLine | None:
        return self._submit(lambda: self.api.update_quantity(line_id, quantity))

    def increment(self, line_id: str) -> CartLine | None:
        return self.update_quantity(line_id, self._line(line_id).quantity + 1)

    def decrement(self, line_id: str) -> CartLine | None:
        return self.update_quantity(line_id, self._line(line_id).quantity - 1)

    def remove(self, line_id: str) -> bool:
        return self._submit(lambda: self.api.remove(line_id))

    def clear(self) -> int:
        return self._submit(self.api.clear)

    def on_transaction_status(self, status: str) -> None:
        """Clear the cart once a checkout is APPROVED.

        With a mutation in flight the clear runs as soon as it settles.
        """
        if status == "APPROVED":
            logger.info("cart_cleared_after_approval")
            self._clear_after_approval()

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def club_id(self) -> str | None:
        return self.lines[0].club_id if self.lines else None

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def ticket_lines(self) -> list[CartLine]:
        return [line for line in self.lines if line.item_type == "ticket"]

    @property
    def menu_lines(self) -> list[CartLine]:
        return [line for line in self.lines if line.item_type == "menu"]

    @property
    def ticket_count(self) -> int:
        return sum(line.quantity for line in self.ticket_lines)

    @property
    def menu_count(self) -> int:
        return sum(line.quantity for line in self.menu_lines)

    def lines_by_date(self) -> dict[date, list[CartLine]]:
        grouped: dict[date, list[CartLine]] = defaultdict(list)
        for line in sorted(self.lines, key=lambda line: line.date):
            grouped[line.date].append(line)
        return dict(grouped)

    def cart_age(self, max_age_minutes: int = DEFAULT_MAX_AGE_MINUTES) -> CartAge:
        if not self.lines:
            return CartAge(is_old=False, age_minutes=0)
        stamps = [line.updated_at for line in self.lines]
        oldest, newest = min(stamps), max(stamps)
        age_minutes = int((self._clock() - oldest).total_seconds() // 60)
        return CartAge(is_old=age_minutes > max_age_minutes, age_minutes=age_minutes, oldest=oldest, newest=newest)

    def _line(self, line_id: str) -> CartLine:
        for line in self.lines:
            if line.id == line_id:
                return line
        raise KeyError(line_id)

    def _submit(self, action):
        with self._lock:
            if self.status is SubmitStatus.SUBMITTING:
                raise BusyError("Another cart update is in progress", code="BUSY")
            self.status = SubmitStatus.SUBMITTING
            self.error = None
        self._notify()
        try:
            result = action()
            lines = self.api.list_lines()
            summary = self.api.summary()
        except Exception as exc:
            self.error = exc
            self.conflict_club_id = exc.club_id if isinstance(exc, ClubConflictError) else None
            logger.info("cart_action_failed", error=type(exc).__name__, code=getattr(exc, "code", None))
            self._settle(SubmitStatus.ERROR)
            raise
        self.conflict_club_id = None
        self.lines = lines
        self.summary = summary
        self._settle(SubmitStatus.SUCCESS)
        return result

    def _settle(self, status: SubmitStatus) -> None:
        with self._lock:
            self.status = status
            clear_pending, self._clear_pending = self._clear_pending, False
        self._notify()
        if clear_pending:
            try:
                self._clear_after_approval()
            except CartClientError as exc:
                # The failed clear already left ERROR and its error on the store.
                logger.warning("deferred_cart_clear_failed", code=exc.code)

    def _clear_after_approval(self) -> None:
        while True:
            try:
                self.clear()
                return
            except BusyError:
                with self._lock:
                    if self.status is SubmitStatus.SUBMITTING:
                        # The in-flight mutation runs the clear when it settles.
                        self._clear_pending = True
                        logger.info("cart_clear_deferred")
                        return

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
