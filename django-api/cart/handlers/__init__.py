from cart.handlers.views import (
    CartAddView,
    CartClearView,
    CartLineView,
    CartListView,
    CartSummaryView,
)

__all__ = [
    "CartAddView",
    "CartClearView",
    "CartLineView",
    "CartListView",
    "CartSummaryView",
]
