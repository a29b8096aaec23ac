from django.contrib import admin
from .models import ClinicalRecord, TreatmentType


class TreatmentTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'cost', 'is_flat_rate', 'location')
    list_filter = ('category', 'is_flat_rate', 'location')
    search_fields = ('name',)


class ClinicalRecordAdmin(admin.ModelAdmin):
    list_display = ('get_patient', 'description', 'teeth_display', 'cost', 'date', 'location')
    list_filter = ('date', 'location')
    search_fields = ('patient__name', 'description')
    raw_id_fields = ('patient',)
    # Balances are only kept in step when records go through the ledger.
    readonly_fields = ('patient', 'teeth', 'cost')

    def get_patient(self, obj):
        return obj.patient.name
    get_patient.short_description = 'Patient'
    get_patient.admin_order_field = 'patient__name'

    def has_add_permission(self, request):
        return False


admin.site.register(TreatmentType, TreatmentTypeAdmin)
admin.site.register(ClinicalRecord, ClinicalRecordAdmin)
