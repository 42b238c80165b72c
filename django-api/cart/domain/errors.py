"""Domain errors for the cart module."""

from common.errors import DomainError, ErrorCode, InvalidInputError


class ClubConflictError(DomainError):
    """Raised when an item from another club is added to a non-empty cart."""

    def __init__(self, current_club_id: str) -> None:
        super().__init__(
            code=ErrorCode.CLUB_CONFLICT,
            message="All items in cart must be from the same club",
            extra={"clubId": current_club_id},
        )
        self.current_club_id = current_club_id


class LimitExceededError(DomainError):
    """Raised when a quantity would exceed the per-person maximum or stock."""

    def __init__(self, message: str, limit: int) -> None:
        super().__init__(
            code=ErrorCode.LIMIT_EXCEEDED,
            message=message,
            extra={"limit": limit},
        )
        self.limit = limit


class LineNotFoundError(DomainError):
    """Raised when a cart line does not exist in the caller's cart."""

    def __init__(self, line_id: str) -> None:
        super().__init__(code=ErrorCode.LINE_NOT_FOUND, message="Cart item not found")
        self.line_id = line_id


class ItemNotFoundError(DomainError):
    """Raised when the ticket, menu item or variant does not exist or is inactive."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.ITEM_NOT_FOUND, message=message)


class ItemUnavailableError(DomainError):
    """Raised when an item exists but can no longer be sold."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.ITEM_UNAVAILABLE, message=message)


class DateConflictError(DomainError):
    """Raised when ticket lines would end up on different dates."""

    def __init__(self, current_date: str) -> None:
        super().__init__(
            code=ErrorCode.DATE_CONFLICT,
            message="All tickets in cart must be for the same date",
            extra={"date": current_date},
        )


class TicketMixConflictError(DomainError):
    """Raised when event tickets and other tickets would share a cart."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.TICKET_MIX_CONFLICT, message=message)


class EmptyCartError(DomainError):
    """Raised when an operation needs at least one line."""

    def __init__(self) -> None:
        super().__init__(code=ErrorCode.EMPTY_CART, message="Cart is empty")


__all__ = [
    "ClubConflictError",
    "DateConflictError",
    "EmptyCartError",
    "InvalidInputError",
    "ItemNotFoundError",
    "ItemUnavailableError",
    "LimitExceededError",
    "LineNotFoundError",
    "TicketMixConflictError",
]
