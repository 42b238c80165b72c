from cart.domain.models import CartLine, CartSummary, PricedLine
from cart.domain.value_objects import LineId, Money, Quantity

__all__ = [
    "CartLine",
    "CartSummary",
    "PricedLine",
    "LineId",
    "Money",
    "Quantity",
]
