# clinic_project/context_processors.py

from django.conf import settings

from clinics.currency import currency_symbol
from clinics.models import ClinicSettings
from staff.session import SessionContext


def clinic_details(request):
    return {
        'CLINIC_NAME': settings.CLINIC_NAME,
        'CLINIC_ADDRESS': settings.CLINIC_ADDRESS,
        'CLINIC_PHONE': settings.CLINIC_PHONE,
        'CLINIC_EMAIL': settings.CLINIC_EMAIL,
    }


def session_context_processor(request):
    """
    Adds the signed-in user's session context and the display currency of
    their location to the template context.
    """
    if not request.user.is_authenticated:
        return {}

    session = SessionContext.from_request(request)
    clinic_settings = ClinicSettings.for_location(session.location_id)
    return {
        'session_context': session,
        'is_admin': session.is_admin,
        'CURRENCY': clinic_settings.currency,
        'CURRENCY_SYMBOL': currency_symbol(clinic_settings.currency),
        'LOYALTY_ENABLED': clinic_settings.loyalty_enabled,
    }
