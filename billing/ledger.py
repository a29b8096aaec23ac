# billing/ledger.py

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR
from functools import wraps
from typing import Any, Optional

from django.db import DatabaseError, transaction
from django.db.models import DecimalField, F, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from clinics.currency import to_money
from clinics.exceptions import ClinicError, GatewayFailure, InsufficientPoints, InsufficientStock, NotFound
from clinics.models import ClinicSettings
from dental_records.models import ClinicalRecord
from loyalty.models import LoyaltyRule, LoyaltyTransaction
from loyalty.rules import LoyaltyRuleResolver
from patients.models import Patient
from .models import Medicine, MedicineSale, PaymentRecord

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
MONEY_FIELD = DecimalField(max_digits=12, decimal_places=2)


@dataclass
class LedgerResult:
    """State of the patient after a ledger operation."""
    balance: Optional[Decimal]
    loyalty_points: int
    record: Any = None
    points_earned: int = 0
    transaction: Optional[LoyaltyTransaction] = None
    affected: int = 0


def _balance_minus(amount):
    """balance - amount, never below zero."""
    return Greatest(F('balance') - Value(amount, output_field=MONEY_FIELD), Value(ZERO, output_field=MONEY_FIELD),
                    output_field=MONEY_FIELD)


def _gateway(operation):
    @wraps(operation)
    def _wrapped(*args, **kwargs):
        try:
            return operation(*args, **kwargs)
        except DatabaseError as e:
            raise GatewayFailure() from e
    return _wrapped


class LedgerEngine:
    """
    Applies financial events to a patient's balance and loyalty points.

    Each operation runs in one database transaction with the patient row
    locked. Balance, points and stock are changed with single UPDATE
    expressions so concurrent requests cannot overwrite each other.
    """

    def __init__(self, resolver=None):
        self.resolver = resolver or LoyaltyRuleResolver()

    # --- helpers ---

    def _lock_patient(self, patient_id):
        try:
            return Patient.objects.select_for_update().get(pk=patient_id)
        except Patient.DoesNotExist:
            raise NotFound(f"Patient {patient_id} does not exist.")

    def _loyalty_enabled(self, location_id):
        return ClinicSettings.for_location(location_id).loyalty_enabled

    def _credit_points(self, patient, location_id, points, description):
        Patient.objects.filter(pk=patient.pk).update(loyalty_points=F('loyalty_points') + points)
        return LoyaltyTransaction.objects.create(
            patient=patient,
            location_id=location_id,
            points=points,
            type=LoyaltyTransaction.EARNED,
            description=description,
        )

    def _award_for_spend(self, patient, location_id, event_type, amount, description):
        if not self._loyalty_enabled(location_id):
            return 0, None
        rule = self.resolver.for_location(location_id, event_type)
        points = self.resolver.points_earned(rule, amount)
        if points <= 0:
            return 0, None
        return points, self._credit_points(patient, location_id, points, description)

    def _result(self, patient, **kwargs):
        patient.refresh_from_db(fields=['balance', 'loyalty_points'])
        return LedgerResult(balance=patient.balance, loyalty_points=patient.loyalty_points, **kwargs)

    # --- operations ---

    @_gateway
    def apply_treatment(self, patient_id, teeth, description, unit_cost, teeth_count=None,
                        flat_rate=False, location_id=None):
        teeth = list(teeth or [])
        if teeth_count is None:
            teeth_count = len(teeth)
        unit_cost = to_money(unit_cost)
        if unit_cost < ZERO:
            raise ClinicError("Treatment cost cannot be negative.")
        cost = unit_cost if flat_rate else to_money(unit_cost * max(teeth_count, 1))

        with transaction.atomic():
            patient = self._lock_patient(patient_id)
            if location_id is None:
                location_id = patient.location_id
            record = ClinicalRecord.objects.create(
                location_id=location_id,
                patient=patient,
                teeth=teeth,
                description=description,
                cost=cost,
            )
            Patient.objects.filter(pk=patient.pk).update(balance=F('balance') + cost, last_visit=record.date)
            points, loyalty_txn = self._award_for_spend(
                patient, location_id, LoyaltyRule.TREATMENT, cost, f"Treatment: {description}"
            )
            result = self._result(patient, record=record, points_earned=points, transaction=loyalty_txn)

        logger.info(f"Treatment {record.pk} charged {cost} to patient {patient_id}; +{points} points")
        return result

    @_gateway
    def undo_treatment(self, record_id, patient_id, cost=None):
        """Deletes a treatment and takes its cost off the balance. Points already earned are kept."""
        with transaction.atomic():
            patient = self._lock_patient(patient_id)
            try:
                record = ClinicalRecord.objects.select_for_update().get(pk=record_id, patient_id=patient_id)
            except ClinicalRecord.DoesNotExist:
                raise NotFound(f"Treatment {record_id} does not exist for patient {patient_id}.")
            cost = record.cost if cost is None else to_money(cost)
            record.delete()
            Patient.objects.filter(pk=patient.pk).update(balance=_balance_minus(cost))
            result = self._result(patient, record=record)

        logger.info(f"Treatment {record_id} undone for patient {patient_id}; -{cost}")
        return result

    @_gateway
    def sell_medicine(self, patient_id, medicine_id, quantity, location_id=None, treatment_id=None):
        if quantity < 1:
            raise ClinicError("Quantity must be at least 1.")

        with transaction.atomic():
            patient = self._lock_patient(patient_id)
            try:
                medicine = Medicine.objects.select_for_update().get(pk=medicine_id)
            except Medicine.DoesNotExist:
                raise NotFound(f"Medicine {medicine_id} does not exist.")
            if treatment_id is not None and not ClinicalRecord.objects.filter(
                    pk=treatment_id, patient_id=patient_id).exists():
                raise NotFound(f"Treatment {treatment_id} does not exist for patient {patient_id}.")

            in_stock = Medicine.objects.filter(pk=medicine.pk, stock__gte=quantity).update(stock=F('stock') - quantity)
            if not in_stock:
                medicine.refresh_from_db(fields=['stock'])
                raise InsufficientStock(
                    f"Only {medicine.stock} {medicine.unit} of {medicine.name} in stock, {quantity} requested."
                )

            if location_id is None:
                location_id = patient.location_id
            total = to_money(medicine.price * quantity)
            sale = MedicineSale.objects.create(
                location_id=location_id,
                patient=patient,
                medicine=medicine,
                quantity=quantity,
                unit_price=medicine.price,
                total_price=total,
                treatment_id=treatment_id,
            )
            Patient.objects.filter(pk=patient.pk).update(balance=F('balance') + total)
            points, loyalty_txn = self._award_for_spend(
                patient, location_id, LoyaltyRule.PURCHASE, total, f"Purchase: {quantity} x {medicine.name}"
            )
            result = self._result(patient, record=sale, points_earned=points, transaction=loyalty_txn)

        logger.info(f"Sold {quantity} x medicine {medicine_id} to patient {patient_id} for {total}; +{points} points")
        return result

    @_gateway
    def process_payment(self, patient_id, amount):
        amount = to_money(amount)
        if amount <= ZERO:
            raise ClinicError("Payment amount must be greater than zero.")

        with transaction.atomic():
            patient = self._lock_patient(patient_id)
            Patient.objects.filter(pk=patient.pk).update(balance=_balance_minus(amount))
            patient.refresh_from_db(fields=['balance', 'loyalty_points'])
            payment = PaymentRecord.objects.create(
                patient=patient,
                amount=amount,
                type=PaymentRecord.FULL if patient.balance <= ZERO else PaymentRecord.PARTIAL,
                remaining_balance=patient.balance,
            )
            result = LedgerResult(balance=patient.balance, loyalty_points=patient.loyalty_points, record=payment)

        logger.info(f"Payment of {amount} from patient {patient_id}; balance now {result.balance}")
        return result

    @_gateway
    def redeem_points(self, patient_id, location_id, points, amount):
        if points < 1:
            raise ClinicError("Points to redeem must be at least 1.")
        amount = to_money(amount)
        if amount < ZERO:
            raise ClinicError("Redemption amount cannot be negative.")

        with transaction.atomic():
            patient = self._lock_patient(patient_id)
            if points > patient.loyalty_points:
                raise InsufficientPoints(
                    f"{patient.name} has {patient.loyalty_points} points, {points} requested."
                )
            redeemed = Patient.objects.filter(pk=patient.pk, loyalty_points__gte=points).update(
                loyalty_points=F('loyalty_points') - points,
                balance=_balance_minus(amount),
            )
            if not redeemed:
                raise InsufficientPoints()
            loyalty_txn = LoyaltyTransaction.objects.create(
                patient=patient,
                location_id=location_id if location_id is not None else patient.location_id,
                points=-points,
                type=LoyaltyTransaction.REDEEMED,
                description=f"Redeemed {points} points for a discount of {amount}",
            )
            result = self._result(patient, record=loyalty_txn, transaction=loyalty_txn)

        logger.info(f"Patient {patient_id} redeemed {points} points for {amount}")
        return result

    @_gateway
    def record_visit(self, patient_id, location_id=None):
        """Awards the points of the active VISIT rule for a completed appointment."""
        with transaction.atomic():
            patient = self._lock_patient(patient_id)
            if location_id is None:
                location_id = patient.location_id
            Patient.objects.filter(pk=patient.pk).update(last_visit=timezone.localdate())

            points, loyalty_txn = 0, None
            if self._loyalty_enabled(location_id):
                rule = self.resolver.for_location(location_id, LoyaltyRule.VISIT)
                points = int(rule.points_per_unit.to_integral_value(rounding=ROUND_FLOOR))
                if points > 0:
                    loyalty_txn = self._credit_points(patient, location_id, points, "Completed visit")
                else:
                    points = 0
            result = self._result(patient, points_earned=points, transaction=loyalty_txn)

        logger.info(f"Visit recorded for patient {patient_id}; +{points} points")
        return result

    @_gateway
    def reset_all_points(self):
        """Sets every patient's points to zero and deletes the whole points history."""
        with transaction.atomic():
            affected = Patient.objects.exclude(loyalty_points=0).update(loyalty_points=0)
            deleted, _ = LoyaltyTransaction.objects.all().delete()

        logger.warning(f"Loyalty points reset for {affected} patients; {deleted} transactions deleted")
        return LedgerResult(balance=None, loyalty_points=0, affected=affected)
