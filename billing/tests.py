from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase, Client
from django.urls import reverse

from clinics.exceptions import ClinicError, GatewayFailure, InsufficientPoints, InsufficientStock, NotFound
from clinics.models import ClinicSettings, Location
from dental_records.models import ClinicalRecord
from loyalty.models import LoyaltyRule, LoyaltyTransaction
from patients.models import Patient
from .ledger import LedgerEngine
from .models import Medicine, MedicineSale, PaymentRecord

User = get_user_model()


class LedgerTestCase(TestCase):
    def setUp(self):
        self.location = Location.objects.create(name="Main Clinic")
        self.patient = Patient.objects.create(name="Mya Mya", location=self.location)
        self.engine = LedgerEngine()

    def set_balance(self, balance, points=0):
        Patient.objects.filter(pk=self.patient.pk).update(balance=Decimal(balance), loyalty_points=points)
        self.patient.refresh_from_db()

    def add_rule(self, event_type, points_per_unit, min_amount='0'):
        return LoyaltyRule.objects.create(
            location=self.location,
            name=f"{event_type} rule",
            event_type=event_type,
            points_per_unit=Decimal(points_per_unit),
            min_amount=Decimal(min_amount),
        )


class TreatmentLedgerTests(LedgerTestCase):
    def test_per_tooth_cost(self):
        result = self.engine.apply_treatment(self.patient.pk, [14, 15, 16], "Filling", Decimal('100.00'))
        self.assertEqual(result.record.cost, Decimal('300.00'))
        self.assertEqual(result.balance, Decimal('300.00'))

    def test_flat_rate_charges_once(self):
        result = self.engine.apply_treatment(self.patient.pk, [1, 2, 3, 4], "Whitening", Decimal('250.00'),
                                             flat_rate=True)
        self.assertEqual(result.balance, Decimal('250.00'))

    def test_general_treatment_charges_one_unit(self):
        result = self.engine.apply_treatment(self.patient.pk, [], "Consultation", Decimal('40.00'))
        self.assertEqual(result.balance, Decimal('40.00'))
        self.assertEqual(result.record.teeth, [])

    def test_explicit_teeth_count(self):
        result = self.engine.apply_treatment(self.patient.pk, [3], "Sealant", Decimal('10.00'), teeth_count=4)
        self.assertEqual(result.balance, Decimal('40.00'))

    def test_balance_is_added_to_existing(self):
        self.set_balance('75.50')
        result = self.engine.apply_treatment(self.patient.pk, [8], "Crown", Decimal('500.00'))
        self.assertEqual(result.balance, Decimal('575.50'))
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.last_visit, result.record.date)

    def test_unknown_patient(self):
        with self.assertRaises(NotFound):
            self.engine.apply_treatment(999999, [1], "Filling", Decimal('10.00'))
        self.assertFalse(ClinicalRecord.objects.exists())

    def test_points_awarded_above_min_amount(self):
        self.add_rule(LoyaltyRule.TREATMENT, '0.002', '100')
        result = self.engine.apply_treatment(self.patient.pk, [], "Implant", Decimal('5000.00'))
        self.assertEqual(result.points_earned, 10)
        self.assertEqual(result.loyalty_points, 10)
        self.assertEqual(result.transaction.type, LoyaltyTransaction.EARNED)
        self.assertEqual(result.transaction.points, 10)

    def test_no_points_below_min_amount(self):
        self.add_rule(LoyaltyRule.TREATMENT, '0.002', '100')
        result = self.engine.apply_treatment(self.patient.pk, [], "Polish", Decimal('50.00'))
        self.assertEqual(result.points_earned, 0)
        self.assertIsNone(result.transaction)
        self.assertFalse(LoyaltyTransaction.objects.exists())

    def test_default_rule_without_configuration(self):
        result = self.engine.apply_treatment(self.patient.pk, [], "Root canal", Decimal('5000.00'))
        self.assertEqual(result.points_earned, 5)

    def test_no_points_when_loyalty_disabled(self):
        self.add_rule(LoyaltyRule.TREATMENT, '1')
        ClinicSettings.objects.create(location=self.location, loyalty_enabled=False)
        result = self.engine.apply_treatment(self.patient.pk, [], "Extraction", Decimal('100.00'))
        self.assertEqual(result.points_earned, 0)
        self.assertEqual(result.balance, Decimal('100.00'))

    def test_undo_restores_balance_exactly(self):
        self.set_balance('33.33')
        applied = self.engine.apply_treatment(self.patient.pk, [5, 6, 7], "Filling", Decimal('33.33'))
        result = self.engine.undo_treatment(applied.record.pk, self.patient.pk)
        self.assertEqual(result.balance, Decimal('33.33'))
        self.assertFalse(ClinicalRecord.objects.exists())

    def test_undo_clamps_at_zero(self):
        applied = self.engine.apply_treatment(self.patient.pk, [], "Scaling", Decimal('80.00'))
        self.engine.process_payment(self.patient.pk, Decimal('50.00'))
        result = self.engine.undo_treatment(applied.record.pk, self.patient.pk)
        self.assertEqual(result.balance, Decimal('0.00'))

    def test_undo_keeps_loyalty_points(self):
        self.add_rule(LoyaltyRule.TREATMENT, '0.01')
        applied = self.engine.apply_treatment(self.patient.pk, [], "Bridge", Decimal('1000.00'))
        result = self.engine.undo_treatment(applied.record.pk, self.patient.pk)
        self.assertEqual(result.loyalty_points, 10)

    def test_undo_record_of_another_patient(self):
        other = Patient.objects.create(name="Other", location=self.location)
        applied = self.engine.apply_treatment(other.pk, [], "Scaling", Decimal('80.00'))
        with self.assertRaises(NotFound):
            self.engine.undo_treatment(applied.record.pk, self.patient.pk)
        self.assertTrue(ClinicalRecord.objects.filter(pk=applied.record.pk).exists())

    def test_undo_with_explicit_cost(self):
        self.set_balance('20.00')
        applied = self.engine.apply_treatment(self.patient.pk, [], "Crown", Decimal('100.00'))
        result = self.engine.undo_treatment(applied.record.pk, self.patient.pk, cost='30.00')
        self.assertEqual(result.balance, Decimal('90.00'))

    def test_undo_with_explicit_cost_clamps_at_zero(self):
        applied = self.engine.apply_treatment(self.patient.pk, [], "Crown", Decimal('100.00'))
        result = self.engine.undo_treatment(applied.record.pk, self.patient.pk, cost=Decimal('250.00'))
        self.assertEqual(result.balance, Decimal('0.00'))
        self.assertFalse(ClinicalRecord.objects.exists())


class MedicineSaleLedgerTests(LedgerTestCase):
    def setUp(self):
        super().setUp()
        self.medicine = Medicine.objects.create(
            location=self.location, name="Amoxicillin", unit="box", price=Decimal('12.50'), stock=10, min_stock=3,
        )

    def test_sale_updates_stock_and_balance(self):
        self.set_balance('5.00')
        result = self.engine.sell_medicine(self.patient.pk, self.medicine.pk, 4)
        self.medicine.refresh_from_db()
        self.assertEqual(self.medicine.stock, 6)
        self.assertEqual(result.balance, Decimal('55.00'))
        self.assertEqual(result.record.total_price, Decimal('50.00'))
        self.assertEqual(result.record.unit_price, Decimal('12.50'))

    def test_sale_of_whole_stock(self):
        self.engine.sell_medicine(self.patient.pk, self.medicine.pk, 10)
        self.medicine.refresh_from_db()
        self.assertEqual(self.medicine.stock, 0)
        self.assertEqual(self.medicine.stock_status, Medicine.OUT)

    def test_insufficient_stock_changes_nothing(self):
        with self.assertRaises(InsufficientStock):
            self.engine.sell_medicine(self.patient.pk, self.medicine.pk, 11)
        self.medicine.refresh_from_db()
        self.patient.refresh_from_db()
        self.assertEqual(self.medicine.stock, 10)
        self.assertEqual(self.patient.balance, Decimal('0.00'))
        self.assertFalse(MedicineSale.objects.exists())

    def test_purchase_points(self):
        self.add_rule(LoyaltyRule.PURCHASE, '0.1', '20')
        result = self.engine.sell_medicine(self.patient.pk, self.medicine.pk, 2)
        self.assertEqual(result.points_earned, 2)

    def test_sale_linked_to_treatment(self):
        applied = self.engine.apply_treatment(self.patient.pk, [30], "Extraction", Decimal('60.00'))
        result = self.engine.sell_medicine(self.patient.pk, self.medicine.pk, 1, treatment_id=applied.record.pk)
        self.assertEqual(result.record.treatment, applied.record)

    def test_zero_quantity_rejected(self):
        with self.assertRaises(ClinicError):
            self.engine.sell_medicine(self.patient.pk, self.medicine.pk, 0)

    def test_unknown_medicine(self):
        with self.assertRaises(NotFound):
            self.engine.sell_medicine(self.patient.pk, 999999, 1)


class PaymentAndRedemptionLedgerTests(LedgerTestCase):
    def test_partial_payment(self):
        self.set_balance('100.00')
        result = self.engine.process_payment(self.patient.pk, Decimal('40.00'))
        self.assertEqual(result.balance, Decimal('60.00'))
        self.assertEqual(result.record.type, PaymentRecord.PARTIAL)
        self.assertEqual(result.record.remaining_balance, Decimal('60.00'))

    def test_full_payment(self):
        self.set_balance('100.00')
        result = self.engine.process_payment(self.patient.pk, Decimal('100.00'))
        self.assertEqual(result.balance, Decimal('0.00'))
        self.assertEqual(result.record.type, PaymentRecord.FULL)

    def test_overpayment_is_clamped(self):
        self.set_balance('20.00')
        result = self.engine.process_payment(self.patient.pk, Decimal('50.00'))
        self.assertEqual(result.balance, Decimal('0.00'))

    def test_redemption_scenario(self):
        self.set_balance('1000.00', points=600)
        rule = self.add_rule(LoyaltyRule.REDEEM, '1', '500')
        resolver = self.engine.resolver
        self.assertTrue(resolver.can_redeem(rule, 600))
        amount = resolver.redemption_value(rule, 600)
        self.assertEqual(amount, Decimal('600.00'))

        result = self.engine.redeem_points(self.patient.pk, self.location.pk, 600, amount)
        self.assertEqual(result.balance, Decimal('400.00'))
        self.assertEqual(result.loyalty_points, 0)
        self.assertEqual(result.transaction.points, -600)
        self.assertEqual(result.transaction.type, LoyaltyTransaction.REDEEMED)

    def test_redemption_clamps_balance(self):
        self.set_balance('100.00', points=300)
        result = self.engine.redeem_points(self.patient.pk, self.location.pk, 300, Decimal('300.00'))
        self.assertEqual(result.balance, Decimal('0.00'))
        self.assertEqual(result.loyalty_points, 0)

    def test_redeeming_too_many_points_changes_nothing(self):
        self.set_balance('100.00', points=50)
        with self.assertRaises(InsufficientPoints):
            self.engine.redeem_points(self.patient.pk, self.location.pk, 51, Decimal('51.00'))
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.balance, Decimal('100.00'))
        self.assertEqual(self.patient.loyalty_points, 50)
        self.assertFalse(LoyaltyTransaction.objects.exists())

    def test_negative_redemption_amount_is_rejected(self):
        self.set_balance('100.00', points=10)
        with self.assertRaises(ClinicError):
            self.engine.redeem_points(self.patient.pk, self.location.pk, 5, Decimal('-50'))
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.balance, Decimal('100.00'))
        self.assertEqual(self.patient.loyalty_points, 10)
        self.assertFalse(LoyaltyTransaction.objects.exists())

    def test_zero_redemption_amount_only_spends_points(self):
        self.set_balance('100.00', points=10)
        result = self.engine.redeem_points(self.patient.pk, self.location.pk, 5, Decimal('0'))
        self.assertEqual(result.balance, Decimal('100.00'))
        self.assertEqual(result.loyalty_points, 5)

    def test_visit_points(self):
        self.add_rule(LoyaltyRule.VISIT, '5')
        result = self.engine.record_visit(self.patient.pk)
        self.assertEqual(result.points_earned, 5)
        self.assertEqual(result.loyalty_points, 5)

    def test_visit_without_rule_awards_nothing(self):
        result = self.engine.record_visit(self.patient.pk)
        self.assertEqual(result.points_earned, 0)
        self.assertFalse(LoyaltyTransaction.objects.exists())

    def test_reset_all_points(self):
        self.set_balance('10.00', points=120)
        LoyaltyTransaction.objects.create(patient=self.patient, points=120, type=LoyaltyTransaction.EARNED)
        result = self.engine.reset_all_points()
        self.assertEqual(result.affected, 1)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.loyalty_points, 0)
        self.assertEqual(self.patient.balance, Decimal('10.00'))
        self.assertFalse(LoyaltyTransaction.objects.exists())


class LedgerDatabaseFailureTests(LedgerTestCase):
    def test_treatment_rolls_back_when_points_cannot_be_written(self):
        self.set_balance('100.00')
        self.add_rule(LoyaltyRule.TREATMENT, '1')
        with mock.patch.object(LoyaltyTransaction.objects, 'create', side_effect=DatabaseError("connection lost")):
            with self.assertRaises(GatewayFailure):
                self.engine.apply_treatment(self.patient.pk, [11], "Filling", Decimal('50.00'))
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.balance, Decimal('100.00'))
        self.assertEqual(self.patient.loyalty_points, 0)
        self.assertFalse(ClinicalRecord.objects.exists())

    def test_sale_rolls_back_when_sale_cannot_be_written(self):
        medicine = Medicine.objects.create(
            location=self.location, name="Amoxicillin", price=Decimal('2.50'), stock=10, min_stock=2,
        )
        with mock.patch.object(MedicineSale.objects, 'create', side_effect=DatabaseError("connection lost")):
            with self.assertRaises(GatewayFailure):
                self.engine.sell_medicine(self.patient.pk, medicine.pk, 4)
        medicine.refresh_from_db()
        self.patient.refresh_from_db()
        self.assertEqual(medicine.stock, 10)
        self.assertEqual(self.patient.balance, Decimal('0.00'))
        self.assertFalse(MedicineSale.objects.exists())

    def test_domain_errors_are_not_reported_as_gateway_failures(self):
        with self.assertRaises(NotFound):
            self.engine.process_payment(999999, Decimal('10.00'))


class MedicineStockStatusTests(TestCase):
    def status(self, stock, min_stock):
        return Medicine(name="Test", stock=stock, min_stock=min_stock).stock_status

    def test_statuses(self):
        self.assertEqual(self.status(0, 10), Medicine.OUT)
        self.assertEqual(self.status(10, 10), Medicine.LOW)
        self.assertEqual(self.status(15, 10), Medicine.WARNING)
        self.assertEqual(self.status(16, 10), Medicine.OK)
        self.assertEqual(self.status(1, 0), Medicine.OK)


class BillingViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_superuser(username='admin', password='testpassword')
        self.client.force_login(self.user)
        self.location = Location.objects.create(name="Main Clinic")
        self.patient = Patient.objects.create(name="Ko Ko", location=self.location)
        self.medicine = Medicine.objects.create(
            location=self.location, name="Ibuprofen", unit="pack", price=Decimal('3.00'), stock=5, min_stock=5,
        )

    def test_inventory_list(self):
        response = self.client.get(reverse('billing:inventory_list'))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['medicines'][0]['stock_status'], Medicine.LOW)
        self.assertEqual(data['low_stock_count'], 1)

    def test_low_stock_list(self):
        Medicine.objects.create(location=self.location, name="Gauze", price=Decimal('1.00'), stock=50, min_stock=5)
        response = self.client.get(reverse('billing:low_stock'))
        self.assertEqual([m['name'] for m in response.json()['medicines']], ['Ibuprofen'])

    def test_add_medicine(self):
        response = self.client.post(reverse('billing:add_medicine'), {
            'name': 'Paracetamol', 'description': '', 'unit': 'box', 'price': '2.50',
            'stock': 30, 'min_stock': 10, 'category': 'Pain Relief',
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['medicine']['price'], '2.50')

    def test_sell_medicine(self):
        response = self.client.post(reverse('billing:sell_medicine', kwargs={'pk': self.patient.pk}), {
            'medicine': self.medicine.pk, 'quantity': 2,
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['balance'], '6.00')

    def test_sell_more_than_stock(self):
        response = self.client.post(reverse('billing:sell_medicine', kwargs={'pk': self.patient.pk}), {
            'medicine': self.medicine.pk, 'quantity': 6,
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('quantity', response.json()['errors'])

    def test_payment(self):
        Patient.objects.filter(pk=self.patient.pk).update(balance=Decimal('80.00'))
        response = self.client.post(reverse('billing:process_payment', kwargs={'pk': self.patient.pk}), {
            'amount': '30.00',
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['payment']['type'], PaymentRecord.PARTIAL)
        self.assertEqual(response.json()['balance'], '50.00')

    def test_payment_above_balance_is_rejected(self):
        response = self.client.post(reverse('billing:process_payment', kwargs={'pk': self.patient.pk}), {
            'amount': '30.00',
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(PaymentRecord.objects.exists())

    def test_delete_sold_medicine_is_refused(self):
        LedgerEngine().sell_medicine(self.patient.pk, self.medicine.pk, 1)
        response = self.client.post(reverse('billing:delete_medicine', kwargs={'pk': self.medicine.pk}))
        self.assertEqual(response.status_code, 409)

    def test_normal_user_cannot_add_medicine(self):
        user = User.objects.create_user(username='clerk', password='testpassword')
        self.client.force_login(user)
        response = self.client.post(reverse('billing:add_medicine'), {'name': 'X'})
        self.assertEqual(response.status_code, 403)
