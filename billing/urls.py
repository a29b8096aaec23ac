# billing/urls.py

from django.urls import path
from . import views

app_name = 'billing'

urlpatterns = [
    # Inventory
    path('inventory/', views.inventory_list_view, name='inventory_list'),
    path('inventory/low-stock/', views.low_stock_view, name='low_stock'),
    path('inventory/add/', views.add_medicine_view, name='add_medicine'),
    path('inventory/<int:pk>/', views.medicine_detail_view, name='medicine_detail'),
    path('inventory/<int:pk>/edit/', views.edit_medicine_view, name='edit_medicine'),
    path('inventory/<int:pk>/delete/', views.delete_medicine_view, name='delete_medicine'),

    # Patient ledger
    path('patient/<int:pk>/', views.patient_billing_view, name='patient_billing'),
    path('patient/<int:pk>/sell-medicine/', views.sell_medicine_view, name='sell_medicine'),
    path('patient/<int:pk>/payment/', views.process_payment_view, name='process_payment'),
]
