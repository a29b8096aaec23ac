# patients/urls.py

from django.urls import path
from . import views

app_name = 'patients'

urlpatterns = [
    path('', views.patient_list, name='patient_list'),
    path('add/', views.add_patient, name='add_patient'),
    path('<int:pk>/', views.patient_detail, name='patient_detail'),
    path('<int:pk>/edit/', views.edit_patient, name='edit_patient'),

    # Patient files
    path('<int:pk>/files/', views.patient_file_list, name='patient_file_list'),
    path('<int:pk>/files/upload/', views.upload_patient_files, name='upload_patient_files'),
    path('<int:pk>/files/<int:file_pk>/remove/', views.remove_patient_file, name='remove_patient_file'),
]
