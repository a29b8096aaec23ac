# staff/views.py

import logging
from dataclasses import asdict

from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.decorators import login_required, permission_required
from django.core.exceptions import PermissionDenied
from django.db.models import ProtectedError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from clinics.http import form_error_response
from .forms import LoginForm, StaffMemberForm, SwitchLocationForm
from .models import StaffMember
from .session import SessionContext

logger = logging.getLogger(__name__)


# --- Authentication ---
def login_view(request):
    if request.method != 'POST':
        return JsonResponse({'authenticated': request.user.is_authenticated, 'next': request.GET.get('next', '/')})

    form = LoginForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)

    user = authenticate(
        request,
        username=form.cleaned_data['username'],
        password=form.cleaned_data['password'],
    )
    if user is None:
        logger.warning(f"Failed login for username '{form.cleaned_data['username']}'")
        return JsonResponse({'error': 'Invalid username or password.'}, status=401)

    login(request, user)
    context = SessionContext.for_user(user)
    context.save(request)
    logger.info(f"{context.username} logged in ({context.role})")
    return JsonResponse({'session': asdict(context)})


@require_POST
def logout_view(request):
    SessionContext.clear(request)
    logout(request)
    return JsonResponse({'logged_out': True})


@login_required
def session_view(request):
    return JsonResponse({'session': asdict(SessionContext.from_request(request))})


@login_required
@require_POST
def switch_location_view(request):
    """Lets an administrator work as if they were at another location, or at all of them."""
    context = SessionContext.from_request(request)
    if not context.is_admin:
        raise PermissionDenied

    form = SwitchLocationForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)
    location = form.cleaned_data['location']
    context.switch_location(request, location.pk if location else None)
    return JsonResponse({'session': asdict(context)})


# --- User management ---
@login_required
@permission_required('staff.view_staffmember', raise_exception=True)
def staff_list(request):
    staff_members = StaffMember.objects.select_related('user', 'location').all()
    return JsonResponse({'users': [member.as_dict() for member in staff_members]})


@login_required
@permission_required('staff.add_staffmember', raise_exception=True)
@require_POST
def add_staff_member(request):
    form = StaffMemberForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)
    staff_member = form.save()
    logger.info(f"User {staff_member.user.username} created with role {staff_member.role}")
    return JsonResponse({'user': staff_member.as_dict()}, status=201)


@login_required
@permission_required('staff.change_staffmember', raise_exception=True)
@require_POST
def edit_staff_member(request, pk):
    staff_member = get_object_or_404(StaffMember, pk=pk)
    form = StaffMemberForm(request.POST, instance=staff_member)
    if not form.is_valid():
        return form_error_response(form)
    return JsonResponse({'user': form.save().as_dict()})


@login_required
@permission_required('staff.delete_staffmember', raise_exception=True)
@require_POST
def delete_staff_member(request, pk):
    staff_member = get_object_or_404(StaffMember, pk=pk)
    if staff_member.user_id == request.user.pk:
        return JsonResponse({'error': 'You cannot delete your own account.'}, status=409)
    staff_name = staff_member.name
    try:
        staff_member.user.delete()
    except ProtectedError:
        return JsonResponse({
            'error': f'Cannot delete {staff_name} because they are linked to existing records.'
        }, status=409)
    logger.info(f"User {staff_name} deleted by {request.user.get_username()}")
    return JsonResponse({'deleted': pk})
