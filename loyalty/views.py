# loyalty/views.py

import logging

from django.contrib.auth.decorators import login_required, permission_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from billing.ledger import LedgerEngine
from clinics.http import form_error_response, handles_clinic_errors
from clinics.models import ClinicSettings
from patients.models import Patient
from staff.session import SessionContext
from .forms import LoyaltyRuleForm, RedeemPointsForm, ResetPointsForm
from .models import LoyaltyRule, LoyaltyTransaction
from .rules import LoyaltyRuleResolver

logger = logging.getLogger(__name__)


def _rule_for_session(request, pk):
    session = SessionContext.from_request(request)
    return get_object_or_404(session.scope(LoyaltyRule.objects.all()), pk=pk)


# --- Rules ---
@login_required
@permission_required('loyalty.view_loyaltyrule', raise_exception=True)
def rule_list_view(request):
    session = SessionContext.from_request(request)
    rules = session.scope(LoyaltyRule.objects.all())
    return JsonResponse({
        'loyalty_enabled': ClinicSettings.for_location(session.location_id).loyalty_enabled,
        'rules': [rule.as_dict() for rule in rules],
    })


@login_required
@permission_required('loyalty.add_loyaltyrule', raise_exception=True)
@require_POST
def add_rule_view(request):
    session = SessionContext.from_request(request)
    form = LoyaltyRuleForm(request.POST, location_id=session.location_id)
    if not form.is_valid():
        return form_error_response(form)
    rule = form.save()
    logger.info(f"Loyalty rule {rule.pk} ({rule.event_type}) created by {session.username}")
    return JsonResponse({'rule': rule.as_dict()}, status=201)


@login_required
@permission_required('loyalty.change_loyaltyrule', raise_exception=True)
@require_POST
def edit_rule_view(request, pk):
    form = LoyaltyRuleForm(request.POST, instance=_rule_for_session(request, pk))
    if not form.is_valid():
        return form_error_response(form)
    return JsonResponse({'rule': form.save().as_dict()})


@login_required
@permission_required('loyalty.delete_loyaltyrule', raise_exception=True)
@require_POST
def delete_rule_view(request, pk):
    _rule_for_session(request, pk).delete()
    return JsonResponse({'deleted': pk})


# --- Patients ---
@login_required
@permission_required('loyalty.view_loyaltytransaction', raise_exception=True)
def patient_points_view(request, pk):
    """Points balance and history of a patient, with what their points are worth today."""
    session = SessionContext.from_request(request)
    patient = get_object_or_404(session.scope(Patient.objects.all()), pk=pk)
    resolver = LoyaltyRuleResolver()
    redeem_rule = resolver.for_location(patient.location_id, LoyaltyRule.REDEEM)
    history = LoyaltyTransaction.objects.filter(patient=patient)

    return JsonResponse({
        'patient_id': patient.pk,
        'loyalty_points': patient.loyalty_points,
        'redemption_value': resolver.redemption_value(redeem_rule, patient.loyalty_points),
        'can_redeem': resolver.can_redeem(redeem_rule, patient.loyalty_points),
        'min_points_to_redeem': redeem_rule.min_amount,
        'transactions': [txn.as_dict() for txn in history],
    })


@login_required
@permission_required('loyalty.add_loyaltytransaction', raise_exception=True)
@require_POST
@handles_clinic_errors
def redeem_points_view(request, pk):
    """Turns loyalty points into a discount on the patient's balance."""
    session = SessionContext.from_request(request)
    patient = get_object_or_404(session.scope(Patient.objects.all()), pk=pk)
    form = RedeemPointsForm(request.POST, patient=patient)
    if not form.is_valid():
        return form_error_response(form)

    points = form.cleaned_data['points']
    location_id = session.location_id or patient.location_id
    resolver = LoyaltyRuleResolver()
    rule = resolver.for_location(location_id, LoyaltyRule.REDEEM)
    if not resolver.can_redeem(rule, points):
        return JsonResponse({
            'errors': {'points': [{'message': f"At least {rule.min_amount:.0f} points are needed to redeem.",
                                   'code': 'min_points'}]}
        }, status=400)

    amount = resolver.redemption_value(rule, points)
    result = LedgerEngine(resolver).redeem_points(patient.pk, location_id, points, amount)
    return JsonResponse({
        'discount': amount,
        'balance': result.balance,
        'loyalty_points': result.loyalty_points,
        'transaction': result.transaction.as_dict(),
    })


@login_required
@permission_required('loyalty.delete_loyaltytransaction', raise_exception=True)
@require_POST
@handles_clinic_errors
def reset_points_view(request):
    """Erases every patient's points and the whole points history. Requires confirm=RESET."""
    form = ResetPointsForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)

    result = LedgerEngine().reset_all_points()
    logger.warning(f"Loyalty points reset by {request.user.get_username()}")
    return JsonResponse({'patients_reset': result.affected})
