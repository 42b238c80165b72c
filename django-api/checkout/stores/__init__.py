from checkout.stores.interfaces import TransactionStore

__all__ = ["TransactionStore"]
