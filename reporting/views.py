# reporting/views.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.decorators import login_required, permission_required
from django.db.models import Sum
from django.http import JsonResponse
from django.urls import reverse
from django.utils import timezone

from billing.models import MedicineSale, PaymentRecord
from clinics.currency import format_currency
from clinics.http import form_error_response
from clinics.models import ClinicSettings
from dental_records.models import ClinicalRecord
from loyalty.models import LoyaltyTransaction
from patients.models import Patient
from staff.session import SessionContext
from .forms import ReportFilterForm


def _total(queryset, field):
    return queryset.aggregate(total=Sum(field))['total'] or Decimal('0.00')


@login_required
@permission_required('staff.view_staffmember', raise_exception=True)
def report_index_view(request):
    return JsonResponse({'reports': [
        {'name': 'Financial Summary', 'url': reverse('reporting:financial_summary')},
        {'name': 'Clinical Records', 'url': reverse('reporting:clinical_records_report')},
        {'name': 'Medicine Sales', 'url': reverse('reporting:medicine_sales_report')},
        {'name': 'Loyalty Points', 'url': reverse('reporting:loyalty_report')},
    ]})


@login_required
@permission_required('staff.view_staffmember', raise_exception=True)
def financial_summary_report(request):
    session = SessionContext.from_request(request)
    currency = ClinicSettings.for_location(session.location_id).currency

    today = timezone.localdate()
    start_of_month = today.replace(day=1)

    next_month = (start_of_month + timedelta(days=32)).replace(day=1)
    end_of_month = next_month - timedelta(days=1)
    this_month = [start_of_month, end_of_month]

    total_treatments_this_month = _total(
        session.scope(ClinicalRecord.objects.filter(date__range=this_month)), 'cost'
    )
    total_sales_this_month = _total(
        session.scope(MedicineSale.objects.filter(date__range=this_month)), 'total_price'
    )
    total_paid_this_month = _total(
        session.scope(PaymentRecord.objects.filter(date__range=this_month), field='patient__location'), 'amount'
    )
    total_outstanding_balance = _total(session.scope(Patient.objects.all()), 'balance')
    total_revenue_this_month = total_treatments_this_month + total_sales_this_month

    return JsonResponse({
        'report_month': start_of_month.strftime("%B %Y"),
        'currency': currency,
        'total_treatments_this_month': total_treatments_this_month,
        'total_sales_this_month': total_sales_this_month,
        'total_revenue_this_month': total_revenue_this_month,
        'total_paid_this_month': total_paid_this_month,
        'total_outstanding_balance': total_outstanding_balance,
        'display': {
            'total_revenue_this_month': format_currency(total_revenue_this_month, currency),
            'total_paid_this_month': format_currency(total_paid_this_month, currency),
            'total_outstanding_balance': format_currency(total_outstanding_balance, currency),
        },
    })


@login_required
@permission_required('staff.view_staffmember', raise_exception=True)
def clinical_records_report_view(request):
    session = SessionContext.from_request(request)
    form = ReportFilterForm(request.GET or None, session=session, hide_medicine=True, hide_type=True)
    records = session.scope(ClinicalRecord.objects.select_related('patient')).order_by('-date', '-created_at')

    if request.GET:
        if not form.is_valid():
            return form_error_response(form)
        date_range = form.cleaned_data.get('date_range')
        patient = form.cleaned_data.get('patient')

        if date_range:
            records = records.filter(date__range=date_range)
        if patient:
            records = records.filter(patient=patient)

    return JsonResponse({
        'records': [record.as_dict() for record in records],
        'total_cost': _total(records, 'cost'),
    })


@login_required
@permission_required('staff.view_staffmember', raise_exception=True)
def medicine_sales_report_view(request):
    session = SessionContext.from_request(request)
    form = ReportFilterForm(request.GET or None, session=session, hide_type=True)
    sales = session.scope(MedicineSale.objects.select_related('patient', 'medicine')).order_by('-date', '-created_at')

    if request.GET:
        if not form.is_valid():
            return form_error_response(form)
        date_range = form.cleaned_data.get('date_range')
        patient = form.cleaned_data.get('patient')
        medicine = form.cleaned_data.get('medicine')

        if date_range:
            sales = sales.filter(date__range=date_range)
        if patient:
            sales = sales.filter(patient=patient)
        if medicine:
            sales = sales.filter(medicine=medicine)

    return JsonResponse({
        'sales': [sale.as_dict() for sale in sales],
        'total_quantity': sales.aggregate(total=Sum('quantity'))['total'] or 0,
        'total_sales': _total(sales, 'total_price'),
    })


@login_required
@permission_required('staff.view_staffmember', raise_exception=True)
def loyalty_report_view(request):
    session = SessionContext.from_request(request)
    form = ReportFilterForm(request.GET or None, session=session, hide_medicine=True)
    transactions = session.scope(LoyaltyTransaction.objects.select_related('patient'))

    if request.GET:
        if not form.is_valid():
            return form_error_response(form)
        date_range = form.cleaned_data.get('date_range')
        patient = form.cleaned_data.get('patient')
        transaction_type = form.cleaned_data.get('type')

        if date_range:
            transactions = transactions.filter(created_at__date__range=date_range)
        if patient:
            transactions = transactions.filter(patient=patient)
        if transaction_type:
            transactions = transactions.filter(type=transaction_type)

    points_earned = transactions.filter(type=LoyaltyTransaction.EARNED).aggregate(total=Sum('points'))['total'] or 0
    points_redeemed = transactions.filter(type=LoyaltyTransaction.REDEEMED).aggregate(total=Sum('points'))['total'] or 0

    return JsonResponse({
        'transactions': [
            dict(transaction.as_dict(), patient_name=transaction.patient.name)
            for transaction in transactions
        ],
        'points_earned': points_earned,
        'points_redeemed': -points_redeemed,
    })
