# clinics/urls.py

from django.urls import path
from . import views

app_name = 'clinics'

urlpatterns = [
    path('locations/', views.location_list_view, name='location_list'),
    path('locations/add/', views.add_location_view, name='add_location'),
    path('locations/<int:pk>/edit/', views.edit_location_view, name='edit_location'),
    path('settings/', views.clinic_settings_view, name='clinic_settings'),
]
