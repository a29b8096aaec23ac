# staff/tests.py

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.test import TestCase, Client, override_settings
from django.urls import reverse

from clinics.models import Location
from patients.models import Patient
from .forms import StaffMemberForm
from .models import ADMINISTRATORS_GROUP, CLINIC_STAFF_GROUP, StaffMember
from .session import SessionContext

User = get_user_model()


class StaffMemberModelTests(TestCase):
    def setUp(self):
        self.location = Location.objects.create(name='Yangon')
        self.user = User.objects.create_user(username='nurse', password='password')

    def test_role_groups_are_created_after_migrate(self):
        admins = Group.objects.get(name=ADMINISTRATORS_GROUP)
        staff = Group.objects.get(name=CLINIC_STAFF_GROUP)
        self.assertTrue(admins.permissions.filter(codename='delete_staffmember').exists())
        self.assertTrue(staff.permissions.filter(codename='add_clinicalrecord').exists())
        self.assertFalse(staff.permissions.filter(codename='add_loyaltyrule').exists())

    def test_save_syncs_group_with_role(self):
        member = StaffMember.objects.create(user=self.user, location=self.location, role=StaffMember.NORMAL)
        self.assertEqual(list(self.user.groups.values_list('name', flat=True)), [CLINIC_STAFF_GROUP])

        member.role = StaffMember.ADMIN
        member.save()
        self.assertEqual(list(self.user.groups.values_list('name', flat=True)), [ADMINISTRATORS_GROUP])

    def test_deactivating_member_deactivates_user(self):
        StaffMember.objects.create(user=self.user, location=self.location, is_active=False)
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)


class SessionContextTests(TestCase):
    def setUp(self):
        self.location = Location.objects.create(name='Yangon')
        self.other_location = Location.objects.create(name='Mandalay')
        self.user = User.objects.create_user(username='reception', password='password')
        StaffMember.objects.create(user=self.user, location=self.location, role=StaffMember.NORMAL)
        Patient.objects.create(name='Local Patient', location=self.location)
        Patient.objects.create(name='Remote Patient', location=self.other_location)
        self.client = Client()

    def test_login_stores_session_context(self):
        response = self.client.post(reverse('staff:login'), {'username': 'reception', 'password': 'password'})
        self.assertEqual(response.status_code, 200)
        session = response.json()['session']
        self.assertEqual(session['role'], StaffMember.NORMAL)
        self.assertEqual(session['location_id'], self.location.pk)
        self.assertIn(SessionContext.SESSION_KEY, self.client.session)

    def test_wrong_password(self):
        response = self.client.post(reverse('staff:login'), {'username': 'reception', 'password': 'nope'})
        self.assertEqual(response.status_code, 401)
        self.assertNotIn(SessionContext.SESSION_KEY, self.client.session)

    def test_logout_clears_session_context(self):
        self.client.post(reverse('staff:login'), {'username': 'reception', 'password': 'password'})
        response = self.client.post(reverse('staff:logout'))
        self.assertEqual(response.status_code, 200)
        self.assertNotIn(SessionContext.SESSION_KEY, self.client.session)

    def test_staff_only_see_their_location(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse('patients:patient_list'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([p['name'] for p in response.json()['patients']], ['Local Patient'])

    def test_global_admin_sees_every_location(self):
        admin = User.objects.create_superuser(username='boss', password='password')
        self.client.force_login(admin)
        response = self.client.get(reverse('patients:patient_list'))
        self.assertEqual(len(response.json()['patients']), 2)

    def test_admin_can_switch_location(self):
        admin = User.objects.create_superuser(username='boss', password='password')
        self.client.force_login(admin)
        response = self.client.post(reverse('staff:switch_location'), {'location': self.other_location.pk})
        self.assertEqual(response.status_code, 200)
        response = self.client.get(reverse('patients:patient_list'))
        self.assertEqual([p['name'] for p in response.json()['patients']], ['Remote Patient'])

    def test_staff_cannot_switch_location(self):
        self.client.force_login(self.user)
        response = self.client.post(reverse('staff:switch_location'), {'location': self.other_location.pk})
        self.assertEqual(response.status_code, 403)

    @override_settings(SESSION_MAX_AGE_HOURS=24)
    def test_expired_context_is_rebuilt(self):
        self.client.force_login(self.user)
        self.client.get(reverse('staff:session'))
        session = self.client.session
        stale = dict(session[SessionContext.SESSION_KEY], login_time=0.0, location_id=self.other_location.pk)
        session[SessionContext.SESSION_KEY] = stale
        session.save()

        response = self.client.get(reverse('staff:session'))
        context = response.json()['session']
        self.assertEqual(context['location_id'], self.location.pk)
        self.assertGreater(context['login_time'], 0)


class StaffManagementTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create_superuser(username='boss', password='password')
        self.client.force_login(self.admin)
        self.location = Location.objects.create(name='Yangon')

    def test_add_user(self):
        response = self.client.post(reverse('staff:add_staff_member'), {
            'username': 'newbie', 'password': 'S3cure-pass', 'first_name': 'Hla', 'last_name': 'Win',
            'email': 'hla@example.com', 'role': StaffMember.NORMAL, 'location': self.location.pk,
            'is_active': 'on',
        })
        self.assertEqual(response.status_code, 201)
        user = User.objects.get(username='newbie')
        self.assertTrue(user.check_password('S3cure-pass'))
        self.assertTrue(user.groups.filter(name=CLINIC_STAFF_GROUP).exists())

    def test_new_user_needs_password(self):
        form = StaffMemberForm(data={'username': 'nopass', 'role': StaffMember.ADMIN})
        self.assertFalse(form.is_valid())
        self.assertIn('password', form.errors)

    def test_clinic_staff_need_a_location(self):
        form = StaffMemberForm(data={'username': 'floating', 'password': 'x', 'role': StaffMember.NORMAL})
        self.assertFalse(form.is_valid())
        self.assertIn('location', form.errors)

    def test_duplicate_username(self):
        User.objects.create_user(username='taken', password='password')
        form = StaffMemberForm(data={'username': 'TAKEN', 'password': 'x', 'role': StaffMember.ADMIN})
        self.assertFalse(form.is_valid())
        self.assertIn('username', form.errors)

    def test_delete_user(self):
        user = User.objects.create_user(username='leaver', password='password')
        member = StaffMember.objects.create(user=user, location=self.location)
        response = self.client.post(reverse('staff:delete_staff_member', kwargs={'pk': member.pk}))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(User.objects.filter(username='leaver').exists())

    def test_staff_cannot_manage_users(self):
        user = User.objects.create_user(username='reception', password='password')
        StaffMember.objects.create(user=user, location=self.location)
        self.client.force_login(user)
        self.assertEqual(self.client.get(reverse('staff:staff_list')).status_code, 403)
