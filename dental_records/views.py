import logging

from django.conf import settings
from django.contrib.auth.decorators import login_required, permission_required
from django.db.models import ProtectedError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from billing.ledger import LedgerEngine
from clinics.http import form_error_response, handles_clinic_errors
from patients.models import Patient
from staff.session import SessionContext
from .forms import ApplyTreatmentForm, TreatmentTypeForm
from .models import ClinicalRecord, TreatmentType

logger = logging.getLogger(__name__)


def _patient_for_session(request, pk):
    session = SessionContext.from_request(request)
    return get_object_or_404(session.scope(Patient.objects.all()), pk=pk)


# --- Service menu ---
@login_required
@permission_required('dental_records.view_treatmenttype', raise_exception=True)
def service_menu_view(request):
    session = SessionContext.from_request(request)
    treatment_types = session.scope(TreatmentType.objects.all())
    category = request.GET.get('category')
    if category:
        treatment_types = treatment_types.filter(category=category)
    return JsonResponse({'treatment_types': [t.as_dict() for t in treatment_types]})


@login_required
@permission_required('dental_records.add_treatmenttype', raise_exception=True)
@require_POST
def add_treatment_type_view(request):
    session = SessionContext.from_request(request)
    form = TreatmentTypeForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)
    treatment_type = form.save(commit=False)
    treatment_type.location_id = session.location_id
    treatment_type.save()
    return JsonResponse({'treatment_type': treatment_type.as_dict()}, status=201)


@login_required
@permission_required('dental_records.change_treatmenttype', raise_exception=True)
@require_POST
def edit_treatment_type_view(request, pk):
    session = SessionContext.from_request(request)
    treatment_type = get_object_or_404(session.scope(TreatmentType.objects.all()), pk=pk)
    form = TreatmentTypeForm(request.POST, instance=treatment_type)
    if not form.is_valid():
        return form_error_response(form)
    return JsonResponse({'treatment_type': form.save().as_dict()})


@login_required
@permission_required('dental_records.delete_treatmenttype', raise_exception=True)
@require_POST
def delete_treatment_type_view(request, pk):
    session = SessionContext.from_request(request)
    treatment_type = get_object_or_404(session.scope(TreatmentType.objects.all()), pk=pk)
    try:
        treatment_type.delete()
    except ProtectedError:
        return JsonResponse({'error': f"{treatment_type.name} is still in use and cannot be deleted."}, status=409)
    return JsonResponse({'deleted': pk})


# --- Treatments ---
@login_required
@permission_required('dental_records.add_clinicalrecord', raise_exception=True)
@require_POST
@handles_clinic_errors
def apply_treatment_view(request, pk):
    """Records a treatment for the patient and charges it to their balance."""
    session = SessionContext.from_request(request)
    patient = _patient_for_session(request, pk)
    form = ApplyTreatmentForm(request.POST, session=session)
    if not form.is_valid():
        return form_error_response(form)

    data = form.cleaned_data
    result = LedgerEngine().apply_treatment(
        patient.pk,
        teeth=data['teeth'],
        description=data['description'],
        unit_cost=data['unit_cost'],
        teeth_count=data.get('teeth_count'),
        flat_rate=data['flat_rate'],
        location_id=session.location_id or patient.location_id,
    )
    return JsonResponse({
        'record': result.record.as_dict(),
        'balance': result.balance,
        'loyalty_points': result.loyalty_points,
        'points_earned': result.points_earned,
    }, status=201)


@login_required
@permission_required('dental_records.delete_clinicalrecord', raise_exception=True)
@require_POST
@handles_clinic_errors
def undo_treatment_view(request, pk, record_pk):
    """
    Removes a treatment and takes its cost back off the balance.
    Points earned by the treatment are kept.
    """
    patient = _patient_for_session(request, pk)
    result = LedgerEngine().undo_treatment(record_pk, patient.pk)
    return JsonResponse({
        'deleted': record_pk,
        'balance': result.balance,
        'loyalty_points': result.loyalty_points,
    })


@login_required
@permission_required('dental_records.view_clinicalrecord', raise_exception=True)
def patient_history_view(request, pk):
    patient = _patient_for_session(request, pk)
    records = ClinicalRecord.objects.filter(patient=patient).select_related('patient')
    return JsonResponse({
        'patient': patient.as_dict(),
        'records': [record.as_dict() for record in records],
    })


@login_required
@permission_required('dental_records.view_clinicalrecord', raise_exception=True)
def recent_records_view(request):
    """The latest clinical records across all patients of the location."""
    session = SessionContext.from_request(request)
    records = session.scope(ClinicalRecord.objects.select_related('patient'))
    records = records.order_by('-date', '-created_at', '-pk')[:settings.RECENT_RECORDS_LIMIT]
    return JsonResponse({'records': [record.as_dict() for record in records]})
