# reporting/tests.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, Client
from django.urls import reverse
from django.utils import timezone

from billing.ledger import LedgerEngine
from billing.models import Medicine
from clinics.models import Location
from dental_records.models import ClinicalRecord
from loyalty.models import LoyaltyRule, LoyaltyTransaction
from patients.models import Patient
from .forms import ReportFilterForm

User = get_user_model()


class ReportFilterFormTests(TestCase):
    def test_date_range_is_parsed(self):
        form = ReportFilterForm({'date_range': '01/03/2024 - 31/03/2024'})
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data['date_range'], (date(2024, 3, 1), date(2024, 3, 31)))

    def test_blank_date_range(self):
        form = ReportFilterForm({'date_range': ''})
        self.assertTrue(form.is_valid())
        self.assertIsNone(form.cleaned_data['date_range'])

    def test_malformed_date_range(self):
        form = ReportFilterForm({'date_range': '2024-03-01 to 2024-03-31'})
        self.assertFalse(form.is_valid())
        self.assertIn('date_range', form.errors)

    def test_reversed_date_range(self):
        form = ReportFilterForm({'date_range': '31/03/2024 - 01/03/2024'})
        self.assertFalse(form.is_valid())

    def test_hidden_fields_are_removed(self):
        form = ReportFilterForm(hide_medicine=True, hide_type=True)
        self.assertEqual(list(form.fields), ['date_range', 'patient'])


class ReportViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create_superuser(username='boss', password='password')
        self.client.force_login(self.admin)
        self.location = Location.objects.create(name='Yangon')
        self.patient = Patient.objects.create(name='Aung Aung', location=self.location)
        self.other_patient = Patient.objects.create(name='Su Su', location=self.location)
        self.engine = LedgerEngine()

    def test_report_index(self):
        response = self.client.get(reverse('reporting:report_index'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['reports']), 4)

    def test_financial_summary(self):
        medicine = Medicine.objects.create(location=self.location, name='Floss', price=Decimal('3.00'), stock=5)
        self.engine.apply_treatment(self.patient.pk, [], 'Scaling', Decimal('60.00'))
        self.engine.sell_medicine(self.patient.pk, medicine.pk, 2)
        self.engine.process_payment(self.patient.pk, Decimal('50.00'))

        data = self.client.get(reverse('reporting:financial_summary')).json()
        self.assertEqual(data['report_month'], timezone.localdate().strftime('%B %Y'))
        self.assertEqual(Decimal(data['total_revenue_this_month']), Decimal('66.00'))
        self.assertEqual(Decimal(data['total_paid_this_month']), Decimal('50.00'))
        self.assertEqual(Decimal(data['total_outstanding_balance']), Decimal('16.00'))

    def test_clinical_records_filtered_by_date_and_patient(self):
        self.engine.apply_treatment(self.patient.pk, [11], 'Filling', Decimal('80.00'))
        self.engine.apply_treatment(self.other_patient.pk, [21], 'Filling', Decimal('80.00'))
        ClinicalRecord.objects.create(location=self.location, patient=self.patient, description='Old',
                                      cost=Decimal('10.00'), date=date(2020, 1, 15))

        today = timezone.localdate().strftime('%d/%m/%Y')
        response = self.client.get(reverse('reporting:clinical_records_report'), {
            'date_range': f'{today} - {today}', 'patient': self.patient.pk,
        })
        data = response.json()
        self.assertEqual([r['description'] for r in data['records']], ['Filling'])
        self.assertEqual(Decimal(data['total_cost']), Decimal('80.00'))

    def test_bad_date_range_is_rejected(self):
        response = self.client.get(reverse('reporting:medicine_sales_report'), {'date_range': 'last week'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('date_range', response.json()['errors'])

    def test_medicine_sales_report(self):
        floss = Medicine.objects.create(location=self.location, name='Floss', price=Decimal('3.00'), stock=5)
        gel = Medicine.objects.create(location=self.location, name='Gel', price=Decimal('7.50'), stock=5)
        self.engine.sell_medicine(self.patient.pk, floss.pk, 2)
        self.engine.sell_medicine(self.other_patient.pk, gel.pk, 1)

        data = self.client.get(reverse('reporting:medicine_sales_report'), {'medicine': floss.pk}).json()
        self.assertEqual(len(data['sales']), 1)
        self.assertEqual(data['total_quantity'], 2)
        self.assertEqual(Decimal(data['total_sales']), Decimal('6.00'))

    def test_loyalty_report_totals(self):
        LoyaltyRule.objects.create(location=self.location, name='Treatment points',
                                   event_type=LoyaltyRule.TREATMENT, points_per_unit=Decimal('0.1'))
        self.engine.apply_treatment(self.patient.pk, [], 'Implant', Decimal('100.00'))
        self.engine.redeem_points(self.patient.pk, self.location.pk, 4, Decimal('0.00'))

        data = self.client.get(reverse('reporting:loyalty_report')).json()
        self.assertEqual(data['points_earned'], 10)
        self.assertEqual(data['points_redeemed'], 4)

        data = self.client.get(reverse('reporting:loyalty_report'), {'type': LoyaltyTransaction.REDEEMED}).json()
        self.assertEqual([t['points'] for t in data['transactions']], [-4])
