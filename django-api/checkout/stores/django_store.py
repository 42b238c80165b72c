"""Django ORM implementation of the TransactionStore."""

from uuid import UUID

from django.db import transaction as db_transaction
from django.utils import timezone

from catalog.domain import ItemType
from cart.domain import Money
from checkout import models
from checkout.domain import PurchaseRecord, Transaction, TransactionLine, TransactionStatus
from checkout.stores.interfaces import TransactionStore


def _line_to_domain(row: models.TransactionLineItem) -> TransactionLine:
    return TransactionLine(
        item_type=ItemType(row.item_type),
        club_id=row.club_id,
        date=row.date,
        name=row.name,
        unit_price=Money.of(row.unit_price),
        quantity=row.quantity,
        subtotal=Money.of(row.subtotal),
        ticket_id=row.ticket_id,
        menu_item_id=row.menu_item_id,
        variant_id=row.variant_id,
    )


def _to_domain(row: models.PurchaseTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        owner_key=row.owner_key,
        buyer_email=row.buyer_email,
        club_id=row.club_id,
        status=TransactionStatus(row.status),
        lines=tuple(_line_to_domain(line) for line in row.lines.all()),
        ticket_subtotal=Money.of(row.ticket_subtotal),
        menu_subtotal=Money.of(row.menu_subtotal),
        total_subtotal=Money.of(row.total_subtotal),
        operational_costs=Money.of(row.operational_costs),
        actual_total=Money.of(row.actual_total),
        created_at=row.created_at,
        updated_at=row.updated_at,
        customer=row.customer or {},
        provider=row.provider,
        reference=row.reference,
    )


def _purchase_to_domain(row: models.PurchaseRecord) -> PurchaseRecord:
    return PurchaseRecord(
        id=row.id,
        transaction_id=row.transaction_id,
        item_type=ItemType(row.item_type),
        club_id=row.club_id,
        date=row.date,
        name=row.name,
        unit_price=Money.of(row.unit_price),
        quantity=row.quantity,
        subtotal=Money.of(row.subtotal),
        ticket_id=row.ticket_id,
        menu_item_id=row.menu_item_id,
        variant_id=row.variant_id,
        qr_payload=row.qr_payload,
        source_purchase_id=row.source_purchase_id,
    )


class DjangoTransactionStore(TransactionStore):
    """Transaction store backed by Django ORM."""

    def create(self, transaction: Transaction) -> Transaction:
        with db_transaction.atomic():
            row = models.PurchaseTransaction.objects.create(
                id=transaction.id,
                owner_key=transaction.owner_key,
                buyer_email=transaction.buyer_email,
                customer=transaction.customer,
                club_id=transaction.club_id,
                status=transaction.status.value,
                ticket_subtotal=transaction.ticket_subtotal.amount,
                menu_subtotal=transaction.menu_subtotal.amount,
                total_subtotal=transaction.total_subtotal.amount,
                operational_costs=transaction.operational_costs.amount,
                actual_total=transaction.actual_total.amount,
                provider=transaction.provider,
                reference=transaction.reference,
            )
            models.TransactionLineItem.objects.bulk_create(
                models.TransactionLineItem(
                    transaction=row,
                    position=position,
                    item_type=line.item_type.value,
                    club_id=line.club_id,
                    date=line.date,
                    name=line.name,
                    unit_price=line.unit_price.amount,
                    quantity=line.quantity,
                    subtotal=line.subtotal.amount,
                    ticket_id=line.ticket_id,
                    menu_item_id=line.menu_item_id,
                    variant_id=line.variant_id,
                )
                for position, line in enumerate(transaction.lines)
            )
        return self.get(row.id)

    def get(self, transaction_id: UUID) -> Transaction | None:
        row = (
            models.PurchaseTransaction.objects.prefetch_related("lines")
            .filter(pk=transaction_id)
            .first()
        )
        return _to_domain(row) if row else None

    def get_by_reference(self, reference: str) -> Transaction | None:
        row = (
            models.PurchaseTransaction.objects.prefetch_related("lines")
            .filter(reference=reference)
            .first()
        )
        return _to_domain(row) if row else None

    def set_reference(self, transaction_id: UUID, provider: str, reference: str) -> Transaction:
        models.PurchaseTransaction.objects.filter(pk=transaction_id).update(
            provider=provider, reference=reference, updated_at=timezone.now()
        )
        return self.get(transaction_id)

    def update_status(
        self, transaction_id: UUID, status: TransactionStatus, expected: TransactionStatus
    ) -> Transaction | None:
        updated = models.PurchaseTransaction.objects.filter(
            pk=transaction_id, status=expected.value
        ).update(status=status.value, updated_at=timezone.now())
        if not updated:
            return None
        return self.get(transaction_id)

    def approve(
        self, transaction_id: UUID, expected: TransactionStatus, records: list[PurchaseRecord]
    ) -> Transaction | None:
        with db_transaction.atomic():
            updated = models.PurchaseTransaction.objects.filter(
                pk=transaction_id, status=expected.value
            ).update(status=TransactionStatus.APPROVED.value, updated_at=timezone.now())
            if not updated:
                return None
            models.PurchaseRecord.objects.bulk_create(
                models.PurchaseRecord(
                    id=record.id,
                    transaction_id=record.transaction_id,
                    item_type=record.item_type.value,
                    club_id=record.club_id,
                    date=record.date,
                    name=record.name,
                    unit_price=record.unit_price.amount,
                    quantity=record.quantity,
                    subtotal=record.subtotal.amount,
                    ticket_id=record.ticket_id,
                    menu_item_id=record.menu_item_id,
                    variant_id=record.variant_id,
                    qr_payload=record.qr_payload,
                    source_purchase_id=record.source_purchase_id,
                )
                for record in records
            )
        return self.get(transaction_id)

    def purchases_for(self, transaction_id: UUID) -> list[PurchaseRecord]:
        rows = models.PurchaseRecord.objects.filter(transaction_id=transaction_id)
        return [_purchase_to_domain(row) for row in rows]
