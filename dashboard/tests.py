# dashboard/tests.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, Client
from django.urls import reverse
from django.utils import timezone

from appointments.models import Appointment
from billing.ledger import LedgerEngine
from billing.models import Medicine
from clinics.models import ClinicSettings, Location
from patients.models import Patient
from staff.models import StaffMember

User = get_user_model()


class DashboardViewTests(TestCase):
    def setUp(self):
        self.location = Location.objects.create(name='Yangon')
        self.other_location = Location.objects.create(name='Mandalay')
        self.user = User.objects.create_user(username='reception', password='password')
        StaffMember.objects.create(user=self.user, location=self.location)
        self.client = Client()
        self.client.force_login(self.user)

        self.patient = Patient.objects.create(name='Aung Aung', location=self.location)
        self.remote_patient = Patient.objects.create(name='Remote', location=self.other_location)
        self.today = timezone.localdate()

    def test_requires_login(self):
        response = Client().get(reverse('dashboard'))
        self.assertEqual(response.status_code, 302)

    def test_counts_are_scoped_to_location(self):
        Appointment.objects.create(location=self.location, patient=self.patient, date=self.today, time='09:00')
        Appointment.objects.create(location=self.location, patient=self.patient,
                                   date=self.today + timedelta(days=3), time='10:00')
        Appointment.objects.create(location=self.location, patient=self.patient,
                                   date=self.today + timedelta(days=4), time='10:00',
                                   status=Appointment.CANCELLED)
        Appointment.objects.create(location=self.other_location, patient=self.remote_patient,
                                   date=self.today, time='09:00')
        Medicine.objects.create(location=self.location, name='Ibuprofen', price=Decimal('2.00'),
                                stock=1, min_stock=5)

        data = self.client.get(reverse('dashboard')).json()
        self.assertEqual(data['total_patients_count'], 1)
        self.assertEqual(data['todays_appointments_count'], 1)
        self.assertEqual(data['upcoming_appointments_count'], 1)
        self.assertEqual(data['low_stock_medicines_count'], 1)

    def test_revenue_includes_treatments_and_sales(self):
        engine = LedgerEngine()
        medicine = Medicine.objects.create(location=self.location, name='Mouthwash', price=Decimal('5.00'), stock=10)
        engine.apply_treatment(self.patient.pk, [11, 12], 'Filling', Decimal('100.00'))
        engine.sell_medicine(self.patient.pk, medicine.pk, 2)
        engine.apply_treatment(self.remote_patient.pk, [], 'Consultation', Decimal('999.00'))

        data = self.client.get(reverse('dashboard')).json()
        self.assertEqual(Decimal(data['daily_revenue']), Decimal('210.00'))
        self.assertEqual(Decimal(data['monthly_revenue']), Decimal('210.00'))
        self.assertEqual(Decimal(data['total_outstanding_balance']), Decimal('210.00'))
        self.assertEqual(data['display']['daily_revenue'], '$210.00')

    def test_display_uses_location_currency(self):
        ClinicSettings.objects.create(location=self.location, currency='MMK')
        Patient.objects.filter(pk=self.patient.pk).update(balance=Decimal('1234.50'))

        data = self.client.get(reverse('dashboard')).json()
        self.assertEqual(data['currency'], 'MMK')
        self.assertEqual(data['display']['total_outstanding_balance'], 'Ks1,235')


class PermissionDeniedTests(TestCase):
    def test_forbidden_requests_get_json(self):
        location = Location.objects.create(name='Yangon')
        user = User.objects.create_user(username='reception', password='password')
        StaffMember.objects.create(user=user, location=location)
        client = Client()
        client.force_login(user)

        response = client.get(reverse('reporting:report_index'))
        self.assertEqual(response.status_code, 403)
        self.assertIn('error', response.json())
