from django.contrib import admin

from cart.models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ["owner_key", "created_at", "updated_at"]
    search_fields = ["owner_key"]
    inlines = [CartItemInline]
