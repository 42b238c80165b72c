"""Checkout service - snapshot, payment and transaction lifecycle.

The service reads the cart under its lock to take the snapshot and never
writes to it. Clearing the cart after approval is the client's call.
"""

import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

import structlog

from catalog.domain import ItemType
from common.errors import UpstreamFailureError
from common.identity import CartOwner
from cart.domain import Money
from cart.domain.errors import EmptyCartError, ItemUnavailableError
from cart.services import CartService
from checkout.domain import PurchaseRecord, Transaction, TransactionLine, TransactionStatus
from checkout.domain.errors import InvalidTransitionError, TransactionNotFoundError
from checkout.gateway import GatewayError, PaymentGateway
from checkout.qr import QRCodec, QRPayload
from checkout.signals import transaction_status_changed
from checkout.stores import TransactionStore

logger = structlog.get_logger(__name__)

FREE_PROVIDER = "free"


class CheckoutService:
    """Service for checkout and transaction status operations."""

    def __init__(
        self,
        cart: CartService,
        transactions: TransactionStore,
        gateway: PaymentGateway,
        qr: QRCodec,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cart = cart
        self._transactions = transactions
        self._gateway = gateway
        self._qr = qr
        self._clock = clock or cart.now

    def submit(self, owner: CartOwner, buyer_email: str, customer: dict | None = None) -> Transaction:
        """Snapshot the priced cart into a PENDING transaction and start payment.

        Raises:
            EmptyCartError: the cart has no lines.
            ItemUnavailableError: a line can no longer be sold.
            UpstreamFailureError: the gateway failed; the transaction is left in ERROR.
        """
        now = self._clock()
        with self._cart.store.locked(owner) as uow:
            priced = self._cart.price_lines(uow.lines(), now)
        if not priced:
            raise EmptyCartError()
        for p in priced:
            if not p.available:
                raise ItemUnavailableError(f"{p.name} is no longer available")

        summary = self._cart.resolver.summarize(priced)
        transaction = self._transactions.create(
            Transaction(
                id=uuid.uuid4(),
                owner_key=owner.key,
                buyer_email=buyer_email,
                club_id=priced[0].line.club_id,
                status=TransactionStatus.PENDING,
                lines=tuple(
                    TransactionLine(
                        item_type=p.line.item_type,
                        club_id=p.line.club_id,
                        date=p.line.date,
                        name=p.name,
                        unit_price=p.unit_price,
                        quantity=p.line.quantity,
                        subtotal=p.subtotal,
                        ticket_id=p.line.ticket_id,
                        menu_item_id=p.line.menu_item_id,
                        variant_id=p.line.variant_id,
                    )
                    for p in priced
                ),
                ticket_subtotal=summary.ticket_subtotal,
                menu_subtotal=summary.menu_subtotal,
                total_subtotal=summary.total_subtotal,
                operational_costs=summary.operational_costs,
                actual_total=summary.actual_total,
                created_at=now,
                updated_at=now,
                customer=customer or {},
            )
        )
        logger.info(
            "transaction_created",
            transaction_id=str(transaction.id),
            owner=owner.key,
            actual_total=str(transaction.actual_total),
            lines=len(transaction.lines),
        )

        if transaction.is_free:
            self._transactions.set_reference(
                transaction.id, FREE_PROVIDER, f"free_{transaction.id.hex}"
            )
            return self.apply_status(transaction.id, TransactionStatus.APPROVED)

        try:
            result = self._gateway.authorize(transaction)
        except GatewayError as exc:
            logger.warning("gateway_authorize_failed", transaction_id=str(transaction.id), error=str(exc))
            self.apply_status(transaction.id, TransactionStatus.ERROR)
            raise UpstreamFailureError() from exc

        transaction = self._transactions.set_reference(
            transaction.id, self._gateway.provider, result.reference
        )
        if result.status is not TransactionStatus.PENDING:
            return self.apply_status(transaction.id, result.status)
        return transaction

    def get(self, transaction_id: UUID | str) -> Transaction:
        key = self._parse_id(transaction_id)
        transaction = self._transactions.get(key)
        if transaction is None:
            raise TransactionNotFoundError(str(transaction_id))
        return transaction

    def get_by_reference(self, reference: str) -> Transaction:
        transaction = self._transactions.get_by_reference(reference)
        if transaction is None:
            raise TransactionNotFoundError(reference)
        return transaction

    def purchases(self, transaction_id: UUID | str) -> list[PurchaseRecord]:
        return self._transactions.purchases_for(self.get(transaction_id).id)

    def apply_status(self, transaction_id: UUID | str, status: TransactionStatus) -> Transaction:
        """Move a transaction to ``status``.

        Re-applying the current status is a no-op. Any other change to a
        terminal transaction raises ``InvalidTransitionError``. Approval and
        its purchase records are written together, so a failure while
        building the records leaves the transaction PENDING for a retry.
        """
        current = self.get(transaction_id)
        if current.status is status:
            return current
        if not current.status.can_transition_to(status):
            raise InvalidTransitionError(current.status, status)

        if status is TransactionStatus.APPROVED:
            records = self._build_purchases(current)
            updated = self._transactions.approve(current.id, current.status, records)
        else:
            records = []
            updated = self._transactions.update_status(current.id, status, expected=current.status)
        if updated is None:
            latest = self.get(current.id)
            if latest.status is status:
                return latest
            raise InvalidTransitionError(latest.status, status)

        logger.info(
            "transaction_status_changed",
            transaction_id=str(updated.id),
            previous=current.status.value,
            status=status.value,
            purchases=len(records),
        )
        transaction_status_changed.send(
            sender=type(self), transaction=updated, previous=current.status
        )
        return updated

    def apply_status_by_reference(self, reference: str, status: TransactionStatus) -> Transaction:
        return self.apply_status(self.get_by_reference(reference).id, status)

    def refresh_status(self, transaction_id: UUID | str) -> Transaction:
        """Ask the gateway for the status of a still-pending transaction.

        A gateway failure leaves the transaction PENDING and raises
        ``UpstreamFailureError``.
        """
        transaction = self.get(transaction_id)
        if transaction.status.is_terminal or not transaction.reference:
            return transaction
        if transaction.provider == FREE_PROVIDER:
            return transaction
        try:
            status = self._gateway.fetch_status(transaction.reference)
        except GatewayError as exc:
            logger.warning("gateway_status_failed", transaction_id=str(transaction.id), error=str(exc))
            raise UpstreamFailureError() from exc
        return self.apply_status(transaction.id, status)

    def _build_purchases(self, transaction: Transaction) -> list[PurchaseRecord]:
        records = []
        menu_qr = None
        for line in transaction.lines:
            record_id = uuid.uuid4()
            if line.item_type is ItemType.TICKET:
                qr_payload = self._qr.encode(
                    QRPayload(type="ticket", id=str(record_id), club_id=line.club_id)
                )
            else:
                if menu_qr is None:
                    menu_qr = self._qr.encode(
                        QRPayload(type="menu", id=str(transaction.id), club_id=line.club_id)
                    )
                qr_payload = menu_qr
            records.append(
                PurchaseRecord(
                    id=record_id,
                    transaction_id=transaction.id,
                    item_type=line.item_type,
                    club_id=line.club_id,
                    date=line.date,
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    subtotal=line.subtotal,
                    ticket_id=line.ticket_id,
                    menu_item_id=line.menu_item_id,
                    variant_id=line.variant_id,
                    qr_payload=qr_payload,
                )
            )
            if line.item_type is ItemType.TICKET:
                records.extend(self._included_purchases(transaction, line, record_id))
        return records

    def _included_purchases(
        self, transaction: Transaction, line: TransactionLine, ticket_record_id: UUID
    ) -> list[PurchaseRecord]:
        """Menu items bundled with a ticket, redeemed with one QR per ticket record."""
        item = self._cart.catalog.get_ticket(line.ticket_id)
        if item is None or not item.included_menu_items:
            return []
        qr_payload = self._qr.encode(
            QRPayload(
                type="menu_from_ticket",
                club_id=line.club_id,
                ticket_purchase_id=str(ticket_record_id),
            )
        )
        return [
            PurchaseRecord(
                id=uuid.uuid4(),
                transaction_id=transaction.id,
                item_type=ItemType.MENU,
                club_id=line.club_id,
                date=line.date,
                name=included.name,
                unit_price=Money.zero(),
                quantity=included.quantity * line.quantity,
                subtotal=Money.zero(),
                menu_item_id=included.menu_item_id,
                variant_id=included.variant_id,
                qr_payload=qr_payload,
                source_purchase_id=ticket_record_id,
            )
            for included in item.included_menu_items
        ]

    @staticmethod
    def _parse_id(transaction_id: UUID | str) -> UUID:
        if isinstance(transaction_id, UUID):
            return transaction_id
        try:
            return UUID(str(transaction_id))
        except ValueError:
            raise TransactionNotFoundError(str(transaction_id)) from None
