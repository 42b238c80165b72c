"""Domain error codes shared by the cart and checkout apps."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    ITEM_UNAVAILABLE = "ITEM_UNAVAILABLE"
    LINE_NOT_FOUND = "LINE_NOT_FOUND"
    CLUB_CONFLICT = "CLUB_CONFLICT"
    DATE_CONFLICT = "DATE_CONFLICT"
    TICKET_MIX_CONFLICT = "TICKET_MIX_CONFLICT"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    EMPTY_CART = "EMPTY_CART"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"
    RATE_LIMITED = "RATE_LIMITED"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message.

    ``extra`` holds structured context returned to the caller alongside the
    message (for example the club currently in the cart).
    """

    code: ErrorCode
    message: str
    extra: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidInputError(DomainError):
    """Raised when a request is well-formed but semantically invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_INPUT, message=message)


class UpstreamFailureError(DomainError):
    """Raised when the payment gateway or catalog cannot be reached."""

    def __init__(self, message: str = "Upstream service unavailable, please retry") -> None:
        super().__init__(code=ErrorCode.UPSTREAM_FAILURE, message=message)


class RateLimitedError(DomainError):
    """Raised when a caller exceeded one of the rate limiter caps."""

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            code=ErrorCode.RATE_LIMITED,
            message="Too many requests, please try again later",
            extra={"retryAfter": retry_after},
        )
        self.retry_after = retry_after
