from django.urls import path

from cart.handlers import (
    CartAddView,
    CartClearView,
    CartLineView,
    CartListView,
    CartSummaryView,
)

urlpatterns = [
    path("unified-cart", CartListView.as_view(), name="cart-list"),
    path("unified-cart/add", CartAddView.as_view(), name="cart-add"),
    path("unified-cart/line/<str:line_id>", CartLineView.as_view(), name="cart-line"),
    path("unified-cart/summary", CartSummaryView.as_view(), name="cart-summary"),
    path("unified-cart/clear", CartClearView.as_view(), name="cart-clear"),
]
