from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase, Client, override_settings
from django.urls import reverse

from clinics.models import Location
from patients.models import Patient
from .models import LoyaltyRule, LoyaltyTransaction
from .rules import LoyaltyRuleResolver

User = get_user_model()


def rule(event_type, points_per_unit, min_amount='0', active=True, name='Rule'):
    return LoyaltyRule(
        name=name,
        event_type=event_type,
        points_per_unit=Decimal(points_per_unit),
        min_amount=Decimal(min_amount),
        active=active,
    )


class LoyaltyRuleResolverTests(TestCase):
    def setUp(self):
        self.resolver = LoyaltyRuleResolver()

    def test_first_active_rule_of_type_wins(self):
        rules = [
            rule(LoyaltyRule.PURCHASE, '1', name='purchase'),
            rule(LoyaltyRule.TREATMENT, '2', active=False, name='inactive'),
            rule(LoyaltyRule.TREATMENT, '3', name='first'),
            rule(LoyaltyRule.TREATMENT, '4', name='second'),
        ]
        self.assertEqual(self.resolver.resolve(rules, LoyaltyRule.TREATMENT).name, 'first')

    def test_default_rule_when_nothing_matches(self):
        resolved = self.resolver.resolve([rule(LoyaltyRule.VISIT, '1', active=False)], LoyaltyRule.VISIT)
        self.assertEqual(resolved.points_per_unit, Decimal('0.001'))
        self.assertEqual(resolved.min_amount, Decimal('0'))
        self.assertIsNone(resolved.pk)

    @override_settings(LOYALTY_DEFAULT_POINTS_PER_UNIT='0.01')
    def test_default_rate_comes_from_settings(self):
        self.assertEqual(self.resolver.resolve([], LoyaltyRule.TREATMENT).points_per_unit, Decimal('0.01'))

    def test_points_are_floored(self):
        treatment = rule(LoyaltyRule.TREATMENT, '0.002', '100')
        self.assertEqual(self.resolver.points_earned(treatment, Decimal('5000')), 10)
        self.assertEqual(self.resolver.points_earned(treatment, Decimal('5499.99')), 10)
        self.assertEqual(self.resolver.points_earned(treatment, Decimal('100')), 0)

    def test_no_points_below_min_amount(self):
        self.assertEqual(self.resolver.points_earned(rule(LoyaltyRule.TREATMENT, '0.002', '100'), Decimal('50')), 0)

    def test_redemption_uses_inverted_rate(self):
        redeem = rule(LoyaltyRule.REDEEM, '0.5', '100')
        self.assertEqual(self.resolver.redemption_value(redeem, 300), Decimal('150.00'))
        self.assertTrue(self.resolver.can_redeem(redeem, 100))
        self.assertFalse(self.resolver.can_redeem(redeem, 99))

    def test_for_location_uses_insertion_order(self):
        location = Location.objects.create(name='North')
        other = Location.objects.create(name='South')
        LoyaltyRule.objects.create(location=other, name='other', event_type=LoyaltyRule.TREATMENT,
                                   points_per_unit=Decimal('9'))
        LoyaltyRule.objects.create(location=location, name='mine', event_type=LoyaltyRule.TREATMENT,
                                   points_per_unit=Decimal('2'))
        self.assertEqual(self.resolver.for_location(location.pk, LoyaltyRule.TREATMENT).name, 'mine')
        self.assertTrue(self.resolver.has_rule(location.pk, LoyaltyRule.TREATMENT))
        self.assertFalse(self.resolver.has_rule(location.pk, LoyaltyRule.VISIT))


class LoyaltyRuleValidationTests(TestCase):
    def setUp(self):
        self.location = Location.objects.create(name='North')
        LoyaltyRule.objects.create(location=self.location, name='existing', event_type=LoyaltyRule.TREATMENT)

    def test_second_active_rule_is_rejected(self):
        duplicate = LoyaltyRule(location=self.location, name='dup', event_type=LoyaltyRule.TREATMENT, active=True)
        with self.assertRaises(ValidationError):
            duplicate.full_clean()

    def test_inactive_duplicate_is_allowed(self):
        LoyaltyRule(location=self.location, name='spare', event_type=LoyaltyRule.TREATMENT, active=False).full_clean()

    def test_same_type_at_another_location_is_allowed(self):
        other = Location.objects.create(name='South')
        LoyaltyRule(location=other, name='south', event_type=LoyaltyRule.TREATMENT).full_clean()


class LoyaltyViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_superuser(username='admin', password='testpassword')
        self.client.force_login(self.user)
        self.location = Location.objects.create(name='North')
        self.patient = Patient.objects.create(
            name='Su Su', location=self.location, balance=Decimal('1000.00'), loyalty_points=600,
        )

    def test_add_rule(self):
        response = self.client.post(reverse('loyalty:add_rule'), {
            'name': 'Treatment points', 'event_type': LoyaltyRule.TREATMENT,
            'points_per_unit': '0.002', 'min_amount': '100', 'active': 'on',
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Decimal(response.json()['rule']['points_per_unit']), Decimal('0.002'))

    def test_add_duplicate_active_rule(self):
        data = {'name': 'Visit', 'event_type': LoyaltyRule.VISIT, 'points_per_unit': '5',
                'min_amount': '0', 'active': 'on'}
        self.assertEqual(self.client.post(reverse('loyalty:add_rule'), data).status_code, 201)
        response = self.client.post(reverse('loyalty:add_rule'), data)
        self.assertEqual(response.status_code, 400)
        self.assertIn('active', response.json()['errors'])

    def test_redeem_points(self):
        LoyaltyRule.objects.create(location=self.location, name='Redeem', event_type=LoyaltyRule.REDEEM,
                                   points_per_unit=Decimal('1'), min_amount=Decimal('500'))
        response = self.client.post(reverse('loyalty:redeem_points', kwargs={'pk': self.patient.pk}),
                                    {'points': 600})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['discount'], '600.00')
        self.assertEqual(data['balance'], '400.00')
        self.assertEqual(data['loyalty_points'], 0)

    def test_redeem_below_minimum(self):
        LoyaltyRule.objects.create(location=self.location, name='Redeem', event_type=LoyaltyRule.REDEEM,
                                   points_per_unit=Decimal('1'), min_amount=Decimal('500'))
        response = self.client.post(reverse('loyalty:redeem_points', kwargs={'pk': self.patient.pk}),
                                    {'points': 100})
        self.assertEqual(response.status_code, 400)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.loyalty_points, 600)

    def test_redeem_more_than_owned(self):
        response = self.client.post(reverse('loyalty:redeem_points', kwargs={'pk': self.patient.pk}),
                                    {'points': 601})
        self.assertEqual(response.status_code, 400)

    def test_patient_points(self):
        LoyaltyTransaction.objects.create(patient=self.patient, points=600, type=LoyaltyTransaction.EARNED)
        response = self.client.get(reverse('loyalty:patient_points', kwargs={'pk': self.patient.pk}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['loyalty_points'], 600)
        self.assertEqual(len(response.json()['transactions']), 1)

    def test_reset_requires_confirmation(self):
        response = self.client.post(reverse('loyalty:reset_points'), {'confirm': 'yes'})
        self.assertEqual(response.status_code, 400)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.loyalty_points, 600)

    def test_reset_points(self):
        response = self.client.post(reverse('loyalty:reset_points'), {'confirm': 'RESET'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['patients_reset'], 1)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.loyalty_points, 0)
