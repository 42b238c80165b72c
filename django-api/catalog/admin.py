from django.contrib import admin

from catalog.models import Club, MenuItem, MenuItemVariant, Ticket, TicketIncludedMenuItem


class TicketInline(admin.TabularInline):
    model = Ticket
    extra = 1


class IncludedMenuItemInline(admin.TabularInline):
    model = TicketIncludedMenuItem
    fk_name = "ticket"
    extra = 0


class MenuItemVariantInline(admin.TabularInline):
    model = MenuItemVariant
    extra = 1


@admin.register(Club)
class ClubAdmin(admin.ModelAdmin):
    list_display = ["name", "menu_type", "created_at"]
    search_fields = ["name"]
    inlines = [TicketInline]


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ["name", "club", "category", "price", "max_per_person", "is_active"]
    list_filter = ["category", "club"]
    inlines = [IncludedMenuItemInline]


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ["name", "club", "price", "has_variants", "is_active"]
    list_filter = ["club"]
    inlines = [MenuItemVariantInline]
