"""Domain errors for the checkout module."""

from common.errors import DomainError, ErrorCode, UpstreamFailureError
from checkout.domain.models import TransactionStatus


class TransactionNotFoundError(DomainError):
    """Raised when a transaction id or gateway reference is unknown."""

    def __init__(self, transaction_id: str) -> None:
        super().__init__(code=ErrorCode.TRANSACTION_NOT_FOUND, message="Transaction not found")
        self.transaction_id = transaction_id


class InvalidTransitionError(DomainError):
    """Raised when a terminal transaction is asked to change status."""

    def __init__(self, current: TransactionStatus, target: TransactionStatus) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Cannot move transaction from {current.value} to {target.value}",
            extra={"status": current.value},
        )
        self.current = current
        self.target = target


class InvalidSignatureError(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.INVALID_SIGNATURE, message="Invalid webhook signature")


__all__ = [
    "InvalidSignatureError",
    "InvalidTransitionError",
    "TransactionNotFoundError",
    "UpstreamFailureError",
]
