# doctors/admin.py

from django.contrib import admin
from .models import Doctor, DoctorSchedule


class DoctorScheduleInline(admin.TabularInline):
    model = DoctorSchedule
    extra = 1


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('name', 'specialization', 'phone', 'location', 'schedule_summary')
    list_filter = ('specialization', 'location')
    search_fields = ('name', 'email', 'phone')
    inlines = [DoctorScheduleInline]
