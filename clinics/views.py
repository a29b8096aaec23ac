# clinics/views.py

from django.contrib.auth.decorators import login_required, permission_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from staff.session import SessionContext
from .currency import currency_symbol
from .forms import LocationForm, ClinicSettingsForm
from .http import form_error_response
from .models import Location, ClinicSettings


def _settings_payload(clinic_settings):
    return {
        'location_id': clinic_settings.location_id,
        'loyalty_enabled': clinic_settings.loyalty_enabled,
        'currency': clinic_settings.currency,
        'currency_symbol': currency_symbol(clinic_settings.currency),
    }


@login_required
@permission_required('clinics.view_location', raise_exception=True)
def location_list_view(request):
    locations = [location.as_dict() for location in Location.objects.all()]
    return JsonResponse({'locations': locations})


@login_required
@permission_required('clinics.add_location', raise_exception=True)
@require_POST
def add_location_view(request):
    form = LocationForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)
    location = form.save()
    return JsonResponse({'location': location.as_dict()}, status=201)


@login_required
@permission_required('clinics.change_location', raise_exception=True)
@require_POST
def edit_location_view(request, pk):
    location = get_object_or_404(Location, pk=pk)
    form = LocationForm(request.POST, instance=location)
    if not form.is_valid():
        return form_error_response(form)
    location = form.save()
    return JsonResponse({'location': location.as_dict()})


@login_required
def clinic_settings_view(request):
    """Returns, or for administrators updates, the settings of the current location."""
    session = SessionContext.from_request(request)
    clinic_settings = ClinicSettings.for_location(session.location_id)

    if request.method == 'POST':
        if not request.user.has_perm('clinics.change_clinicsettings'):
            return JsonResponse({'error': 'You do not have permission to change clinic settings.'}, status=403)
        form = ClinicSettingsForm(request.POST, instance=clinic_settings)
        if not form.is_valid():
            return form_error_response(form)
        clinic_settings = form.save()

    return JsonResponse({'settings': _settings_payload(clinic_settings)})
