# clinics/http.py

import logging
from functools import wraps

from django.http import JsonResponse

from .exceptions import ClinicError, GatewayFailure

logger = logging.getLogger(__name__)


def form_error_response(form, status=400):
    return JsonResponse({'errors': form.errors.get_json_data()}, status=status)


def clinic_error_response(error):
    return JsonResponse({'error': error.message, 'kind': type(error).__name__}, status=error.status_code)


def handles_clinic_errors(view_func):
    """
    Turns a ClinicError raised by a view into a JSON error response.
    Gateway failures are logged since they leave the user with nothing to fix.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except GatewayFailure as e:
            logger.error(f"Database failure in {view_func.__name__}: {e.__cause__ or e}", exc_info=True)
            return clinic_error_response(e)
        except ClinicError as e:
            return clinic_error_response(e)
    return _wrapped
