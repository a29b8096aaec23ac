# doctors/urls.py

from django.urls import path
from . import views

app_name = 'doctors'

urlpatterns = [
    path('', views.doctor_list, name='doctor_list'),
    path('add/', views.add_doctor, name='add_doctor'),
    path('<int:pk>/', views.doctor_detail, name='doctor_detail'),
    path('<int:pk>/edit/', views.edit_doctor, name='edit_doctor'),
    path('<int:pk>/delete/', views.delete_doctor, name='delete_doctor'),
]
