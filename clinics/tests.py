# clinics/tests.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, Client, RequestFactory, override_settings
from django.urls import reverse

from clinic_project.context_processors import clinic_details, session_context_processor
from staff.models import StaffMember
from .currency import currency_symbol, format_currency, to_money
from .exceptions import GatewayFailure, InsufficientStock, NotFound
from .http import handles_clinic_errors
from .models import ClinicSettings, Location

User = get_user_model()


class CurrencyTests(TestCase):
    def test_usd_keeps_cents(self):
        self.assertEqual(format_currency(Decimal('1234.5'), 'USD'), '$1,234.50')
        self.assertEqual(format_currency(0, 'USD'), '$0.00')

    def test_mmk_is_rounded(self):
        self.assertEqual(format_currency(Decimal('1234.5'), 'MMK'), 'Ks1,235')
        self.assertEqual(format_currency('999.49', 'MMK'), 'Ks999')

    def test_unknown_currency_falls_back_to_dollars(self):
        self.assertEqual(format_currency(10, 'EUR'), '$10.00')
        self.assertEqual(currency_symbol('EUR'), '$')

    def test_non_numeric_value_is_returned_as_is(self):
        self.assertEqual(format_currency('n/a'), 'n/a')

    def test_to_money_rounds_half_up(self):
        self.assertEqual(to_money('2.345'), Decimal('2.35'))
        self.assertEqual(to_money(None), Decimal('0.00'))
        self.assertEqual(to_money(0.1), Decimal('0.10'))


class ClinicSettingsTests(TestCase):
    def setUp(self):
        self.location = Location.objects.create(name='Yangon')

    @override_settings(DEFAULT_CURRENCY='MMK')
    def test_settings_are_created_with_configured_default(self):
        clinic_settings = ClinicSettings.for_location(self.location.pk)
        self.assertEqual(clinic_settings.currency, 'MMK')
        self.assertTrue(clinic_settings.loyalty_enabled)
        self.assertEqual(ClinicSettings.for_location(self.location.pk).pk, clinic_settings.pk)

    def test_global_settings_row(self):
        clinic_settings = ClinicSettings.for_location(None)
        self.assertIsNone(clinic_settings.location_id)
        self.assertEqual(str(clinic_settings), 'Settings for All locations')

    def test_admin_updates_settings(self):
        client = Client()
        client.force_login(User.objects.create_superuser(username='boss', password='password'))
        response = client.post(reverse('clinics:clinic_settings'), {'currency': 'MMK'})
        self.assertEqual(response.status_code, 200)
        data = response.json()['settings']
        self.assertEqual(data['currency'], 'MMK')
        self.assertEqual(data['currency_symbol'], 'Ks')
        self.assertFalse(data['loyalty_enabled'])

    def test_staff_can_read_but_not_change_settings(self):
        user = User.objects.create_user(username='reception', password='password')
        StaffMember.objects.create(user=user, location=self.location)
        client = Client()
        client.force_login(user)

        response = client.get(reverse('clinics:clinic_settings'))
        self.assertEqual(response.json()['settings']['location_id'], self.location.pk)

        response = client.post(reverse('clinics:clinic_settings'), {'currency': 'MMK', 'loyalty_enabled': 'on'})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(ClinicSettings.for_location(self.location.pk).currency, 'USD')


class LocationViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.client.force_login(User.objects.create_superuser(username='boss', password='password'))

    def test_add_and_list_locations(self):
        response = self.client.post(reverse('clinics:add_location'), {'name': ' Yangon ', 'address': 'Main Road'})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['location']['name'], 'Yangon')

        response = self.client.get(reverse('clinics:location_list'))
        self.assertEqual([loc['name'] for loc in response.json()['locations']], ['Yangon'])

    def test_location_needs_a_name(self):
        response = self.client.post(reverse('clinics:add_location'), {'name': '  '})
        self.assertEqual(response.status_code, 400)
        self.assertIn('name', response.json()['errors'])

    def test_edit_location(self):
        location = Location.objects.create(name='Yangon')
        response = self.client.post(reverse('clinics:edit_location', kwargs={'pk': location.pk}),
                                    {'name': 'Yangon Downtown'})
        self.assertEqual(response.status_code, 200)
        location.refresh_from_db()
        self.assertEqual(location.name, 'Yangon Downtown')


class ClinicErrorHandlingTests(TestCase):
    def setUp(self):
        self.request = RequestFactory().get('/')

    def test_errors_become_json_responses(self):
        @handles_clinic_errors
        def out_of_stock(request):
            raise InsufficientStock("Only 2 left.")

        response = out_of_stock(self.request)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.content, b'{"error": "Only 2 left.", "kind": "InsufficientStock"}')

    def test_default_message(self):
        @handles_clinic_errors
        def missing(request):
            raise NotFound()

        response = missing(self.request)
        self.assertEqual(response.status_code, 404)
        self.assertIn(b'does not exist', response.content)

    def test_gateway_failures_are_logged(self):
        @handles_clinic_errors
        def broken(request):
            raise GatewayFailure()

        with self.assertLogs('clinics.http', level='ERROR'):
            response = broken(self.request)
        self.assertEqual(response.status_code, 503)


class ContextProcessorTests(TestCase):
    @override_settings(CLINIC_NAME='Smile Clinic')
    def test_clinic_details(self):
        self.assertEqual(clinic_details(RequestFactory().get('/'))['CLINIC_NAME'], 'Smile Clinic')

    def test_session_context_for_signed_in_user(self):
        location = Location.objects.create(name='Yangon')
        ClinicSettings.objects.create(location=location, currency='MMK', loyalty_enabled=False)
        user = User.objects.create_user(username='reception', password='password')
        StaffMember.objects.create(user=user, location=location)

        client = Client()
        client.force_login(user)
        request = RequestFactory().get('/')
        request.user = user
        request.session = client.session

        context = session_context_processor(request)
        self.assertFalse(context['is_admin'])
        self.assertEqual(context['CURRENCY_SYMBOL'], 'Ks')
        self.assertFalse(context['LOYALTY_ENABLED'])
