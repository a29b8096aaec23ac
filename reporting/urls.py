# reporting/urls.py

from django.urls import path
from . import views

app_name = 'reporting'

urlpatterns = [
    path('', views.report_index_view, name='report_index'),
    path('financial-summary/', views.financial_summary_report, name='financial_summary'),
    path('clinical-records/', views.clinical_records_report_view, name='clinical_records_report'),
    path('medicine-sales/', views.medicine_sales_report_view, name='medicine_sales_report'),
    path('loyalty/', views.loyalty_report_view, name='loyalty_report'),
]
