# patients/views.py

import logging

from django.contrib.auth.decorators import login_required, permission_required
from django.db import models
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from billing.models import MedicineSale, PaymentRecord
from clinics.http import form_error_response
from dental_records.models import ClinicalRecord
from loyalty.models import LoyaltyTransaction
from staff.session import SessionContext
from .forms import PatientForm, PatientFileUploadForm
from .models import Patient, PatientFile

logger = logging.getLogger(__name__)


def _patient_for_session(request, pk):
    session = SessionContext.from_request(request)
    return get_object_or_404(session.scope(Patient.objects.all()), pk=pk)


@login_required
@permission_required('patients.view_patient', raise_exception=True)
def patient_list(request):
    """List the patients of the current location, with optional search."""
    session = SessionContext.from_request(request)
    search_query = request.GET.get('q', '').strip()
    patients = session.scope(Patient.objects.all())
    if search_query:
        patients = patients.filter(
            models.Q(name__icontains=search_query) |
            models.Q(email__icontains=search_query) |
            models.Q(contact_number__icontains=search_query)
        )
    return JsonResponse({
        'patients': [patient.as_dict() for patient in patients],
        'search_query': search_query,
    })


@login_required
@permission_required('patients.view_patient', raise_exception=True)
def patient_detail(request, pk):
    """Details of a patient with their treatment, sales, payment and loyalty history."""
    patient = _patient_for_session(request, pk)
    records = ClinicalRecord.objects.filter(patient=patient).order_by('-date', '-pk')
    sales = MedicineSale.objects.filter(patient=patient).select_related('medicine')
    payments = PaymentRecord.objects.filter(patient=patient)
    loyalty_history = LoyaltyTransaction.objects.filter(patient=patient)

    return JsonResponse({
        'patient': patient.as_dict(),
        'treatments': [record.as_dict() for record in records],
        'medicine_sales': [sale.as_dict() for sale in sales],
        'payments': [payment.as_dict() for payment in payments],
        'loyalty_transactions': [txn.as_dict() for txn in loyalty_history],
    })


@login_required
@permission_required('patients.add_patient', raise_exception=True)
@require_POST
def add_patient(request):
    """Register a new patient at the current location."""
    session = SessionContext.from_request(request)
    form = PatientForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)

    patient = form.save(commit=False)
    patient.location_id = session.location_id
    patient.save()
    logger.info(f"Patient {patient.pk} registered by {session.username}")
    return JsonResponse({'patient': patient.as_dict()}, status=201)


@login_required
@permission_required('patients.change_patient', raise_exception=True)
@require_POST
def edit_patient(request, pk):
    """Edit a patient's contact details. Balance and points are not editable here."""
    patient = _patient_for_session(request, pk)
    form = PatientForm(request.POST, instance=patient)
    if not form.is_valid():
        return form_error_response(form)
    patient = form.save()
    return JsonResponse({'patient': patient.as_dict()})


@login_required
@permission_required('patients.view_patientfile', raise_exception=True)
def patient_file_list(request, pk):
    patient = _patient_for_session(request, pk)
    return JsonResponse({'files': [f.as_dict() for f in patient.files.all()]})


@login_required
@permission_required('patients.add_patientfile', raise_exception=True)
@require_POST
def upload_patient_files(request, pk):
    patient = _patient_for_session(request, pk)
    uploads = request.FILES.getlist('files')
    if not uploads:
        return JsonResponse({'error': 'No file was selected.'}, status=400)

    forms_to_save = [PatientFileUploadForm(data={}, files={'files': upload}) for upload in uploads]
    invalid = [form for form in forms_to_save if not form.is_valid()]
    if invalid:
        return form_error_response(invalid[0])

    saved = [form.save(patient) for form in forms_to_save]
    return JsonResponse({'files': [f.as_dict() for f in saved]}, status=201)


@login_required
@permission_required('patients.delete_patientfile', raise_exception=True)
@require_POST
def remove_patient_file(request, pk, file_pk):
    patient = _patient_for_session(request, pk)
    patient_file = get_object_or_404(PatientFile, pk=file_pk, patient=patient)
    path = patient_file.path
    patient_file.delete()
    return JsonResponse({'removed': path})
