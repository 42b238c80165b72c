from django.contrib import admin

from checkout.models import PurchaseRecord, PurchaseTransaction, TransactionLineItem


class TransactionLineInline(admin.TabularInline):
    model = TransactionLineItem
    extra = 0


class PurchaseRecordInline(admin.TabularInline):
    model = PurchaseRecord
    extra = 0
    exclude = ["qr_payload"]


@admin.register(PurchaseTransaction)
class PurchaseTransactionAdmin(admin.ModelAdmin):
    list_display = ["id", "buyer_email", "status", "actual_total", "provider", "created_at"]
    list_filter = ["status", "provider"]
    search_fields = ["buyer_email", "reference"]
    inlines = [TransactionLineInline, PurchaseRecordInline]
