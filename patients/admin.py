# patients/admin.py

from django.contrib import admin
from .models import Patient, PatientFile


class PatientFileInline(admin.TabularInline):
    model = PatientFile
    extra = 0
    readonly_fields = ('name', 'size', 'content_type', 'uploaded_at')


class PatientAdmin(admin.ModelAdmin):
    list_display = ('name', 'contact_number', 'location', 'balance', 'loyalty_points', 'updated_at')
    list_filter = ('location',)
    search_fields = ('name', 'email', 'contact_number')
    # Balance and points only change through ledger operations.
    readonly_fields = ('balance', 'loyalty_points', 'last_visit')
    inlines = [PatientFileInline]

admin.site.register(Patient, PatientAdmin)
