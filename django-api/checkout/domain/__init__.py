from checkout.domain.models import PurchaseRecord, Transaction, TransactionLine, TransactionStatus

__all__ = ["PurchaseRecord", "Transaction", "TransactionLine", "TransactionStatus"]
