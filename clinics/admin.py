# clinics/admin.py

from django.contrib import admin
from .models import Location, ClinicSettings


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ('name', 'phone', 'email', 'created_at')
    search_fields = ('name', 'address', 'email')


@admin.register(ClinicSettings)
class ClinicSettingsAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'currency', 'loyalty_enabled', 'updated_at')
    list_filter = ('currency', 'loyalty_enabled')
