# dental_records/urls.py

from django.urls import path
from . import views

app_name = 'dental_records'

urlpatterns = [
    # Service menu
    path('services/', views.service_menu_view, name='service_menu'),
    path('services/add/', views.add_treatment_type_view, name='add_treatment_type'),
    path('services/<int:pk>/edit/', views.edit_treatment_type_view, name='edit_treatment_type'),
    path('services/<int:pk>/delete/', views.delete_treatment_type_view, name='delete_treatment_type'),

    # Treatments of a patient
    path('patient/<int:pk>/', views.patient_history_view, name='patient_history'),
    path('patient/<int:pk>/apply/', views.apply_treatment_view, name='apply_treatment'),
    path('patient/<int:pk>/records/<int:record_pk>/undo/', views.undo_treatment_view, name='undo_treatment'),

    path('recent/', views.recent_records_view, name='recent_records'),
]
