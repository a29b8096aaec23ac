# billing/views.py

import logging

from django.contrib.auth.decorators import login_required, permission_required
from django.db.models import ProtectedError, Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from clinics.http import form_error_response, handles_clinic_errors
from patients.models import Patient
from staff.session import SessionContext
from .forms import MedicineForm, MedicineSaleForm, PaymentForm
from .ledger import LedgerEngine
from .models import Medicine, MedicineSale, PaymentRecord

logger = logging.getLogger(__name__)


def _medicine_for_session(request, pk):
    session = SessionContext.from_request(request)
    return get_object_or_404(session.scope(Medicine.objects.all()), pk=pk)


def _patient_for_session(request, pk):
    session = SessionContext.from_request(request)
    return get_object_or_404(session.scope(Patient.objects.all()), pk=pk)


# =============== INVENTORY ===============
@login_required
@permission_required('billing.view_medicine', raise_exception=True)
def inventory_list_view(request):
    session = SessionContext.from_request(request)
    medicines = session.scope(Medicine.objects.all())

    search_query = request.GET.get('q', '').strip()
    if search_query:
        medicines = medicines.filter(
            Q(name__icontains=search_query) |
            Q(category__icontains=search_query) |
            Q(description__icontains=search_query)
        )

    return JsonResponse({
        'medicines': [medicine.as_dict() for medicine in medicines],
        'search_query': search_query,
        'low_stock_count': session.scope(Medicine.objects.low_stock()).count(),
    })


@login_required
@permission_required('billing.view_medicine', raise_exception=True)
def low_stock_view(request):
    """Medicines at or below their reorder threshold, emptiest first."""
    session = SessionContext.from_request(request)
    medicines = session.scope(Medicine.objects.low_stock()).order_by('stock', 'name')
    return JsonResponse({'medicines': [medicine.as_dict() for medicine in medicines]})


@login_required
@permission_required('billing.view_medicine', raise_exception=True)
def medicine_detail_view(request, pk):
    medicine = _medicine_for_session(request, pk)
    sales = medicine.sales.select_related('patient')[:20]
    return JsonResponse({
        'medicine': medicine.as_dict(),
        'recent_sales': [sale.as_dict() for sale in sales],
    })


@login_required
@permission_required('billing.add_medicine', raise_exception=True)
@require_POST
def add_medicine_view(request):
    session = SessionContext.from_request(request)
    form = MedicineForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)
    medicine = form.save(commit=False)
    medicine.location_id = session.location_id
    medicine.save()
    return JsonResponse({'medicine': medicine.as_dict()}, status=201)


@login_required
@permission_required('billing.change_medicine', raise_exception=True)
@require_POST
def edit_medicine_view(request, pk):
    form = MedicineForm(request.POST, instance=_medicine_for_session(request, pk))
    if not form.is_valid():
        return form_error_response(form)
    return JsonResponse({'medicine': form.save().as_dict()})


@login_required
@permission_required('billing.delete_medicine', raise_exception=True)
@require_POST
def delete_medicine_view(request, pk):
    medicine = _medicine_for_session(request, pk)
    try:
        medicine.delete()
    except ProtectedError:
        return JsonResponse({
            'error': f'Cannot delete {medicine.name} because it has been sold to patients.'
        }, status=409)
    return JsonResponse({'deleted': pk})


# =============== SALES & PAYMENTS ===============
@login_required
@permission_required('billing.add_medicinesale', raise_exception=True)
@require_POST
@handles_clinic_errors
def sell_medicine_view(request, pk):
    session = SessionContext.from_request(request)
    patient = _patient_for_session(request, pk)
    form = MedicineSaleForm(request.POST, patient=patient, session=session)
    if not form.is_valid():
        return form_error_response(form)

    treatment = form.cleaned_data.get('treatment')
    result = LedgerEngine().sell_medicine(
        patient.pk,
        form.cleaned_data['medicine'].pk,
        form.cleaned_data['quantity'],
        location_id=session.location_id or patient.location_id,
        treatment_id=treatment.pk if treatment else None,
    )
    return JsonResponse({
        'sale': result.record.as_dict(),
        'balance': result.balance,
        'loyalty_points': result.loyalty_points,
        'points_earned': result.points_earned,
    }, status=201)


@login_required
@permission_required('billing.add_paymentrecord', raise_exception=True)
@require_POST
@handles_clinic_errors
def process_payment_view(request, pk):
    patient = _patient_for_session(request, pk)
    form = PaymentForm(request.POST, patient=patient)
    if not form.is_valid():
        return form_error_response(form)

    result = LedgerEngine().process_payment(patient.pk, form.cleaned_data['amount'])
    return JsonResponse({
        'payment': result.record.as_dict(),
        'balance': result.balance,
    }, status=201)


@login_required
@permission_required('billing.view_paymentrecord', raise_exception=True)
def patient_billing_view(request, pk):
    """Balance, sales and payments of one patient."""
    patient = _patient_for_session(request, pk)
    sales = MedicineSale.objects.filter(patient=patient).select_related('medicine', 'patient')
    payments = PaymentRecord.objects.filter(patient=patient)
    return JsonResponse({
        'patient': patient.as_dict(),
        'balance': patient.balance,
        'medicine_sales': [sale.as_dict() for sale in sales],
        'payments': [payment.as_dict() for payment in payments],
    })
