# dashboard/views.py

from decimal import Decimal

from django.contrib.auth.decorators import login_required
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.http import JsonResponse
from django.utils import timezone

from appointments.models import Appointment
from billing.models import Medicine, MedicineSale
from clinics.currency import format_currency
from clinics.models import ClinicSettings
from dental_records.models import ClinicalRecord
from patients.models import Patient
from staff.session import SessionContext

ZERO = Decimal('0.00')


def revenue_between(session, start_date, end_date):
    """Treatments charged plus medicine sold between two dates, inclusive."""
    treatments = session.scope(ClinicalRecord.objects.filter(date__range=[start_date, end_date]))
    sales = session.scope(MedicineSale.objects.filter(date__range=[start_date, end_date]))
    treatment_total = treatments.aggregate(total=Coalesce(Sum('cost'), ZERO))['total']
    sales_total = sales.aggregate(total=Coalesce(Sum('total_price'), ZERO))['total']
    return (treatment_total + sales_total).quantize(Decimal('0.01'))


@login_required
def dashboard_view(request):
    session = SessionContext.from_request(request)
    currency = ClinicSettings.for_location(session.location_id).currency

    today = timezone.localdate()
    start_of_month = today.replace(day=1)

    appointments_qs = session.scope(Appointment.objects.all())
    patients_qs = session.scope(Patient.objects.all())

    total_outstanding_balance = patients_qs.aggregate(total=Coalesce(Sum('balance'), ZERO))['total']
    daily_revenue = revenue_between(session, today, today)
    monthly_revenue = revenue_between(session, start_of_month, today)

    return JsonResponse({
        'session': {
            'username': session.username,
            'role': session.role,
            'location_id': session.location_id,
        },
        'currency': currency,
        'total_patients_count': patients_qs.count(),
        'todays_appointments_count': appointments_qs.filter(date=today).count(),
        'upcoming_appointments_count': appointments_qs.filter(
            date__gt=today, status=Appointment.SCHEDULED
        ).count(),
        'total_outstanding_balance': total_outstanding_balance,
        'low_stock_medicines_count': session.scope(Medicine.objects.low_stock()).count(),
        'daily_revenue': daily_revenue,
        'monthly_revenue': monthly_revenue,
        'display': {
            'total_outstanding_balance': format_currency(total_outstanding_balance, currency),
            'daily_revenue': format_currency(daily_revenue, currency),
            'monthly_revenue': format_currency(monthly_revenue, currency),
        },
    })


def custom_permission_denied_view(request, exception=None):
    return JsonResponse({'error': 'You do not have permission to perform this action.'}, status=403)
