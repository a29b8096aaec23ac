# dental_records/tests.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase, Client, override_settings
from django.urls import reverse

from billing.ledger import LedgerEngine
from clinics.models import Location
from loyalty.models import LoyaltyRule
from patients.models import Patient
from staff.models import StaffMember
from .forms import ApplyTreatmentForm, TeethField
from .models import ClinicalRecord, TreatmentType, validate_teeth

User = get_user_model()


class TeethTests(TestCase):
    def test_teeth_field_parses_and_deduplicates(self):
        self.assertEqual(TeethField(required=False).clean('14, 15,14 ; 30'), [14, 15, 30])

    def test_blank_teeth_is_general_treatment(self):
        self.assertEqual(TeethField(required=False).clean(''), [])

    def test_teeth_field_rejects_out_of_range(self):
        with self.assertRaises(ValidationError):
            TeethField(required=False).clean('0, 33')

    def test_teeth_field_rejects_words(self):
        with self.assertRaises(ValidationError):
            TeethField(required=False).clean('upper left')

    def test_model_validator(self):
        validate_teeth([1, 32])
        with self.assertRaises(ValidationError):
            validate_teeth([True])
        with self.assertRaises(ValidationError):
            validate_teeth('11')

    def test_teeth_display(self):
        patient = Patient.objects.create(name='Kyaw Kyaw')
        self.assertEqual(ClinicalRecord(patient=patient, teeth=[14, 15]).teeth_display, '#14, #15')
        self.assertEqual(ClinicalRecord(patient=patient, teeth=[]).teeth_display, 'General')


class ApplyTreatmentFormTests(TestCase):
    def setUp(self):
        self.whitening = TreatmentType.objects.create(
            name='Whitening', cost=Decimal('250.00'), category='Cosmetic', is_flat_rate=True
        )

    def test_menu_item_fills_defaults(self):
        form = ApplyTreatmentForm({'treatment_type': self.whitening.pk, 'teeth': '1, 2, 3'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['description'], 'Whitening')
        self.assertEqual(form.cleaned_data['unit_cost'], Decimal('250.00'))
        self.assertTrue(form.cleaned_data['flat_rate'])

    def test_explicit_values_win_over_menu(self):
        form = ApplyTreatmentForm({
            'treatment_type': self.whitening.pk, 'description': 'Touch-up',
            'unit_cost': '90.00', 'flat_rate': 'false',
        })
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['description'], 'Touch-up')
        self.assertEqual(form.cleaned_data['unit_cost'], Decimal('90.00'))
        self.assertFalse(form.cleaned_data['flat_rate'])

    def test_custom_treatment_needs_description_and_cost(self):
        form = ApplyTreatmentForm({'teeth': '11'})
        self.assertFalse(form.is_valid())
        self.assertIn('description', form.errors)
        self.assertIn('unit_cost', form.errors)

    def test_negative_cost_rejected(self):
        form = ApplyTreatmentForm({'description': 'Refund', 'unit_cost': '-5'})
        self.assertFalse(form.is_valid())
        self.assertIn('unit_cost', form.errors)


class DentalRecordViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create_superuser(username='boss', password='password')
        self.client.force_login(self.admin)
        self.location = Location.objects.create(name='Yangon')
        self.patient = Patient.objects.create(name='Aung Aung', location=self.location)
        self.filling = TreatmentType.objects.create(name='Filling', cost=Decimal('100.00'), category='Restorative')

    def test_service_menu_filtered_by_category(self):
        TreatmentType.objects.create(name='Scaling', cost=Decimal('40.00'), category='Preventative')
        response = self.client.get(reverse('dental_records:service_menu'), {'category': 'Restorative'})
        self.assertEqual([t['name'] for t in response.json()['treatment_types']], ['Filling'])

    def test_add_treatment_type(self):
        response = self.client.post(reverse('dental_records:add_treatment_type'), {
            'name': 'Crown', 'cost': '500.00', 'category': 'Restorative',
        })
        self.assertEqual(response.status_code, 201)
        self.assertFalse(response.json()['treatment_type']['is_flat_rate'])

    def test_treatment_type_cost_cannot_be_negative(self):
        response = self.client.post(reverse('dental_records:add_treatment_type'), {
            'name': 'Crown', 'cost': '-1', 'category': 'Restorative',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('cost', response.json()['errors'])

    def test_delete_treatment_type(self):
        response = self.client.post(reverse('dental_records:delete_treatment_type', kwargs={'pk': self.filling.pk}))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(TreatmentType.objects.exists())

    def test_apply_treatment_charges_per_tooth(self):
        response = self.client.post(reverse('dental_records:apply_treatment', kwargs={'pk': self.patient.pk}), {
            'treatment_type': self.filling.pk, 'teeth': '14, 15, 16',
        })
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(Decimal(data['balance']), Decimal('300.00'))
        self.assertEqual(data['record']['teeth'], [14, 15, 16])
        self.assertEqual(data['record']['location_id'], self.location.pk)

    def test_apply_treatment_awards_points(self):
        LoyaltyRule.objects.create(location=self.location, name='Treatment points',
                                   event_type=LoyaltyRule.TREATMENT, points_per_unit=Decimal('0.01'))
        response = self.client.post(reverse('dental_records:apply_treatment', kwargs={'pk': self.patient.pk}), {
            'description': 'Implant', 'unit_cost': '1500.00',
        })
        self.assertEqual(response.json()['points_earned'], 15)

    def test_apply_treatment_with_bad_teeth(self):
        response = self.client.post(reverse('dental_records:apply_treatment', kwargs={'pk': self.patient.pk}), {
            'treatment_type': self.filling.pk, 'teeth': '40',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('teeth', response.json()['errors'])
        self.assertFalse(ClinicalRecord.objects.exists())

    def test_undo_treatment(self):
        result = LedgerEngine().apply_treatment(self.patient.pk, [8], 'Crown', Decimal('500.00'))
        url = reverse('dental_records:undo_treatment', kwargs={'pk': self.patient.pk, 'record_pk': result.record.pk})
        response = self.client.post(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.json()['balance']), Decimal('0.00'))
        self.assertFalse(ClinicalRecord.objects.exists())

    def test_undo_unknown_treatment(self):
        url = reverse('dental_records:undo_treatment', kwargs={'pk': self.patient.pk, 'record_pk': 999})
        response = self.client.post(url)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['kind'], 'NotFound')

    def test_patient_history(self):
        engine = LedgerEngine()
        engine.apply_treatment(self.patient.pk, [], 'Consultation', Decimal('20.00'))
        engine.apply_treatment(self.patient.pk, [11], 'Filling', Decimal('100.00'))
        response = self.client.get(reverse('dental_records:patient_history', kwargs={'pk': self.patient.pk}))
        self.assertEqual(len(response.json()['records']), 2)

    @override_settings(RECENT_RECORDS_LIMIT=2)
    def test_recent_records_are_limited(self):
        engine = LedgerEngine()
        for description in ('One', 'Two', 'Three'):
            engine.apply_treatment(self.patient.pk, [], description, Decimal('10.00'))
        records = self.client.get(reverse('dental_records:recent_records')).json()['records']
        self.assertEqual([r['description'] for r in records], ['Three', 'Two'])
        self.assertEqual(records[0]['patient_name'], 'Aung Aung')

    def test_clinic_staff_cannot_edit_service_menu(self):
        user = User.objects.create_user(username='reception', password='password')
        StaffMember.objects.create(user=user, location=self.location)
        self.client.force_login(user)
        response = self.client.post(reverse('dental_records:add_treatment_type'), {
            'name': 'Crown', 'cost': '500.00', 'category': 'Restorative',
        })
        self.assertEqual(response.status_code, 403)
