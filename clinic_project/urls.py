# clinic_project/urls.py

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from dashboard.views import dashboard_view

urlpatterns = [
    path('admin/', admin.site.urls),

    # Dashboard URL
    path('', dashboard_view, name='dashboard'),

    # django-select2 URL
    path("select2/", include("django_select2.urls")),

    # App-specific URLs
    path('clinics/', include('clinics.urls')),
    path('patients/', include('patients.urls')),
    path('doctors/', include('doctors.urls')),
    path('appointments/', include('appointments.urls')),
    path('dental-records/', include('dental_records.urls')),
    path('billing/', include('billing.urls')),
    path('loyalty/', include('loyalty.urls')),
    path('reporting/', include('reporting.urls')),
    path('staff/', include('staff.urls')),
]

# Serve media files during development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

handler403 = 'dashboard.views.custom_permission_denied_view'
