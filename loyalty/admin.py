# loyalty/admin.py

from django.contrib import admin
from .models import LoyaltyRule, LoyaltyTransaction


@admin.register(LoyaltyRule)
class LoyaltyRuleAdmin(admin.ModelAdmin):
    list_display = ('name', 'event_type', 'points_per_unit', 'min_amount', 'active', 'location')
    list_filter = ('event_type', 'active', 'location')
    search_fields = ('name',)


@admin.register(LoyaltyTransaction)
class LoyaltyTransactionAdmin(admin.ModelAdmin):
    list_display = ('patient', 'points', 'type', 'description', 'created_at', 'location')
    list_filter = ('type', 'location')
    search_fields = ('patient__name', 'description')

    # Append-only history.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
