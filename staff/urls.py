# staff/urls.py

from django.urls import path
from . import views

app_name = 'staff'

urlpatterns = [
    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),
    path('session/', views.session_view, name='session'),
    path('session/location/', views.switch_location_view, name='switch_location'),

    path('users/', views.staff_list, name='staff_list'),
    path('users/add/', views.add_staff_member, name='add_staff_member'),
    path('users/<int:pk>/edit/', views.edit_staff_member, name='edit_staff_member'),
    path('users/<int:pk>/delete/', views.delete_staff_member, name='delete_staff_member'),
]
