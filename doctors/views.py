# doctors/views.py

import logging

from django.contrib.auth.decorators import login_required, permission_required
from django.db import transaction
from django.db.models import ProtectedError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from staff.session import SessionContext
from .forms import DoctorForm, DoctorScheduleFormSet
from .models import Doctor

logger = logging.getLogger(__name__)


def _doctor_for_session(request, pk):
    session = SessionContext.from_request(request)
    return get_object_or_404(session.scope(Doctor.objects.all()), pk=pk)


def _save_doctor(request, doctor=None):
    form = DoctorForm(request.POST, instance=doctor)
    schedule_formset = DoctorScheduleFormSet(request.POST, instance=doctor, prefix='schedules')

    if not (form.is_valid() and schedule_formset.is_valid()):
        errors = dict(form.errors.get_json_data())
        schedule_errors = [e.get_json_data() for e in schedule_formset.errors if e]
        if schedule_errors:
            errors['schedules'] = schedule_errors
        if schedule_formset.non_form_errors():
            errors['schedules_all'] = [e['message'] for e in schedule_formset.non_form_errors().get_json_data()]
        return None, JsonResponse({'errors': errors}, status=400)

    with transaction.atomic():
        saved_doctor = form.save(commit=False)
        if doctor is None:
            saved_doctor.location_id = SessionContext.from_request(request).location_id
        saved_doctor.save()
        schedule_formset.instance = saved_doctor
        schedule_formset.save()
    return saved_doctor, None


@login_required
@permission_required('doctors.view_doctor', raise_exception=True)
def doctor_list(request):
    session = SessionContext.from_request(request)
    doctors = session.scope(Doctor.objects.prefetch_related('schedules'))
    return JsonResponse({'doctors': [doctor.as_dict() for doctor in doctors]})


@login_required
@permission_required('doctors.view_doctor', raise_exception=True)
def doctor_detail(request, pk):
    doctor = _doctor_for_session(request, pk)
    return JsonResponse({'doctor': doctor.as_dict()})


@login_required
@permission_required('doctors.add_doctor', raise_exception=True)
@require_POST
def add_doctor(request):
    doctor, error_response = _save_doctor(request)
    if error_response:
        return error_response
    return JsonResponse({'doctor': doctor.as_dict()}, status=201)


@login_required
@permission_required('doctors.change_doctor', raise_exception=True)
@require_POST
def edit_doctor(request, pk):
    doctor, error_response = _save_doctor(request, _doctor_for_session(request, pk))
    if error_response:
        return error_response
    return JsonResponse({'doctor': doctor.as_dict()})


@login_required
@permission_required('doctors.delete_doctor', raise_exception=True)
@require_POST
def delete_doctor(request, pk):
    doctor = _doctor_for_session(request, pk)
    doctor_name = str(doctor)
    try:
        doctor.delete()
    except ProtectedError:
        return JsonResponse({
            'error': f'Cannot delete {doctor_name} because they are linked to existing appointments. '
                     'Please re-assign or delete those appointments first.'
        }, status=409)
    logger.info(f"{doctor_name} deleted")
    return JsonResponse({'deleted': pk})
