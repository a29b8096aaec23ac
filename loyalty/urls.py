# loyalty/urls.py

from django.urls import path
from . import views

app_name = 'loyalty'

urlpatterns = [
    path('rules/', views.rule_list_view, name='rule_list'),
    path('rules/add/', views.add_rule_view, name='add_rule'),
    path('rules/<int:pk>/edit/', views.edit_rule_view, name='edit_rule'),
    path('rules/<int:pk>/delete/', views.delete_rule_view, name='delete_rule'),

    path('patient/<int:pk>/', views.patient_points_view, name='patient_points'),
    path('patient/<int:pk>/redeem/', views.redeem_points_view, name='redeem_points'),

    path('reset/', views.reset_points_view, name='reset_points'),
]
