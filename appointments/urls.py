from django.urls import path
from . import views

app_name = 'appointments'

urlpatterns = [
    # API endpoints for the calendar and the booking form
    path('api/all/', views.appointment_api_view, name='appointment_api_view'),
    path('available-slots/', views.available_slots_view, name='available_slots'),

    path('', views.appointment_list_view, name='appointment_list'),
    path('schedule/', views.schedule_appointment_view, name='schedule_appointment'),

    path('<int:pk>/', views.appointment_detail_view, name='appointment_detail'),
    path('<int:pk>/edit/', views.edit_appointment_view, name='edit_appointment'),
    path('<int:pk>/status/', views.update_status_view, name='update_status'),
    path('<int:pk>/delete/', views.delete_appointment_view, name='delete_appointment'),
]
