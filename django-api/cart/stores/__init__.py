from cart.stores.interfaces import CartStore, CartUnitOfWork

__all__ = ["CartStore", "CartUnitOfWork"]
