from django.contrib import admin
from .models import Appointment


class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('patient', 'doctor', 'date', 'time', 'type', 'status', 'location')
    list_filter = ('status', 'doctor', 'location', 'date')
    search_fields = ('patient__name', 'doctor__name', 'type')
    list_per_page = 20

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('patient', 'doctor', 'location')


admin.site.register(Appointment, AppointmentAdmin)
