# billing/admin.py

from django.contrib import admin
from .models import Medicine, MedicineSale, PaymentRecord


# Medicine Admin
@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'unit', 'price', 'stock', 'min_stock', 'stock_status', 'location')
    list_filter = ('category', 'location')
    search_fields = ('name', 'category', 'description')


# Sales and payments are written by the ledger only; the admin shows them read-only.
class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(MedicineSale)
class MedicineSaleAdmin(ReadOnlyLedgerAdmin):
    list_display = ('patient', 'medicine', 'quantity', 'unit_price', 'total_price', 'date', 'location')
    list_filter = ('date', 'location')
    search_fields = ('patient__name', 'medicine__name')


@admin.register(PaymentRecord)
class PaymentRecordAdmin(ReadOnlyLedgerAdmin):
    list_display = ('patient', 'amount', 'type', 'remaining_balance', 'date')
    list_filter = ('type', 'date')
    search_fields = ('patient__name',)
