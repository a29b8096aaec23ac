# appointments/views.py

import logging
from datetime import datetime, timedelta

from django.contrib.auth.decorators import login_required, permission_required
from django.db import models, transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_POST

from billing.ledger import LedgerEngine
from clinics.http import form_error_response, handles_clinic_errors
from staff.session import SessionContext
from .availability import AvailabilityCalculator
from .forms import AppointmentForm, AppointmentStatusForm, AvailableSlotsForm
from .models import Appointment

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    Appointment.SCHEDULED: '#17a2b8',
    Appointment.COMPLETED: '#28a745',
    Appointment.CANCELLED: '#6c757d',
}


def _appointments_for_session(request):
    session = SessionContext.from_request(request)
    return session.scope(Appointment.objects.select_related('patient', 'doctor'))


# --- API VIEW ---
@login_required
@permission_required('appointments.view_appointment', raise_exception=True)
def appointment_api_view(request):
    """Calendar feed of every appointment at the current location."""
    events = []
    for appointment in _appointments_for_session(request):
        start = datetime.combine(appointment.date, appointment.time)
        events.append({
            'title': appointment.patient.name,
            'start': start.isoformat(),
            'end': (start + timedelta(minutes=AvailabilityCalculator().slot_minutes)).isoformat(),
            'url': reverse('appointments:appointment_detail', kwargs={'pk': appointment.pk}),
            'color': STATUS_COLORS.get(appointment.status, '#17a2b8'),
            'extendedProps': {
                'patient': appointment.patient.name,
                'doctor': str(appointment.doctor) if appointment.doctor else '',
                'time': appointment.time.strftime('%I:%M %p'),
                'type': appointment.type,
                'status': appointment.status,
            }
        })
    return JsonResponse(events, safe=False)


# --- List View ---
@login_required
@permission_required('appointments.view_appointment', raise_exception=True)
def appointment_list_view(request):
    """Upcoming (soonest first) and past (latest first) appointments."""
    appointments = _appointments_for_session(request)
    search_query = request.GET.get('q', '').strip()
    if search_query:
        appointments = appointments.filter(
            models.Q(patient__name__icontains=search_query) |
            models.Q(doctor__name__icontains=search_query) |
            models.Q(type__icontains=search_query)
        )
    doctor_id = request.GET.get('doctor')
    if doctor_id:
        appointments = appointments.filter(doctor_id=doctor_id)

    today = timezone.localdate()
    is_upcoming = models.Q(date__gte=today, status=Appointment.SCHEDULED)
    upcoming = appointments.filter(is_upcoming).order_by('date', 'time')
    past = appointments.exclude(is_upcoming).order_by('-date', '-time')

    return JsonResponse({
        'upcoming': [appointment.as_dict() for appointment in upcoming],
        'past': [appointment.as_dict() for appointment in past],
        'search_query': search_query,
    })


# --- Schedule ---
@login_required
@permission_required('appointments.add_appointment', raise_exception=True)
@require_POST
def schedule_appointment_view(request):
    session = SessionContext.from_request(request)
    form = AppointmentForm(request.POST, session=session)
    if not form.is_valid():
        return form_error_response(form)

    appointment = form.save(commit=False)
    appointment.location_id = session.location_id or appointment.patient.location_id
    appointment.save()
    logger.info(f"Appointment {appointment.pk} scheduled for patient {appointment.patient_id}")
    return JsonResponse({'appointment': appointment.as_dict()}, status=201)


# --- Detail View ---
@login_required
@permission_required('appointments.view_appointment', raise_exception=True)
def appointment_detail_view(request, pk):
    appointment = get_object_or_404(_appointments_for_session(request), pk=pk)
    return JsonResponse({'appointment': appointment.as_dict()})


# --- Edit ---
@login_required
@permission_required('appointments.change_appointment', raise_exception=True)
@require_POST
def edit_appointment_view(request, pk):
    session = SessionContext.from_request(request)
    appointment = get_object_or_404(_appointments_for_session(request), pk=pk)
    form = AppointmentForm(request.POST, instance=appointment, session=session)
    if not form.is_valid():
        return form_error_response(form)
    appointment = form.save()
    return JsonResponse({'appointment': appointment.as_dict()})


# --- Status ---
@login_required
@permission_required('appointments.change_appointment', raise_exception=True)
@require_POST
@handles_clinic_errors
def update_status_view(request, pk):
    """
    Changes the status of an appointment. Moving an appointment to Completed
    counts as a visit for loyalty purposes.
    """
    appointment = get_object_or_404(_appointments_for_session(request), pk=pk)
    form = AppointmentStatusForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)

    new_status = form.cleaned_data['status']
    visit_points = 0
    with transaction.atomic():
        if appointment.change_status(new_status):
            result = LedgerEngine().record_visit(
                appointment.patient_id,
                location_id=appointment.location_id,
            )
            visit_points = result.points_earned

    return JsonResponse({'appointment': appointment.as_dict(), 'points_earned': visit_points})


# --- Delete ---
@login_required
@permission_required('appointments.delete_appointment', raise_exception=True)
@require_POST
def delete_appointment_view(request, pk):
    appointment = get_object_or_404(_appointments_for_session(request), pk=pk)
    appointment.delete()
    return JsonResponse({'deleted': pk})


# --- Availability ---
@login_required
@permission_required('appointments.view_appointment', raise_exception=True)
def available_slots_view(request):
    """Open slots of a doctor on a date, as a sorted list of "HH:MM" strings."""
    session = SessionContext.from_request(request)
    form = AvailableSlotsForm(request.GET, session=session)
    if not form.is_valid():
        return form_error_response(form)

    doctor = form.cleaned_data['doctor']
    on_date = form.cleaned_data['date']
    slots = AvailabilityCalculator().available_slots(doctor, on_date)
    return JsonResponse({'doctor_id': doctor.pk, 'date': on_date, 'slots': slots})
