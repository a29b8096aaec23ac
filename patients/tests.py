# patients/tests.py

import shutil
import tempfile
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, Client, override_settings
from django.urls import reverse
from phonenumber_field.phonenumber import PhoneNumber

from billing.ledger import LedgerEngine
from clinics.models import Location
from doctors.models import Doctor
from staff.models import StaffMember
from .forms import PatientForm, get_country_choices
from .models import Patient, PatientFile

User = get_user_model()


class PatientFormTests(TestCase):

    def setUp(self):
        self.staff_member = StaffMember.objects.create(
            user=User.objects.create_user(username='staffuser', password='password', first_name='Thida'),
            contact_number=PhoneNumber.from_string('+919876543000'),
        )
        self.doctor = Doctor.objects.create(name='Min Thu', phone=PhoneNumber.from_string('+919876543001'))
        self.existing_patient = Patient.objects.create(
            name='Existing Patient',
            contact_number=PhoneNumber.from_string('+919876543003'),
        )

    def test_country_choices(self):
        choices = dict(get_country_choices())
        self.assertIn('Myanmar', choices['95'])
        self.assertTrue(choices['95'].endswith('(+95)'))
        self.assertEqual(choices[''], '---------')

    def test_valid_data(self):
        form = PatientForm(data={
            'name': '  New Patient ', 'email': 'new@example.com',
            'country_code': '91', 'national_number': '9876543004',
        })
        self.assertTrue(form.is_valid(), form.errors)
        patient = form.save()
        self.assertEqual(str(patient.contact_number), '+919876543004')
        self.assertEqual(patient.name, 'New Patient')

    def test_phone_is_optional(self):
        form = PatientForm(data={'name': 'No Phone'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertIsNone(form.save().contact_number)

    def test_name_is_required(self):
        form = PatientForm(data={'name': '   '})
        self.assertFalse(form.is_valid())
        self.assertIn('name', form.errors)

    def test_phone_number_invalid_format(self):
        form = PatientForm(data={'name': 'Invalid Phone', 'country_code': '91', 'national_number': 'invalid'})
        self.assertFalse(form.is_valid())
        self.assertIn('The phone number is not valid for the selected country.', form.errors['national_number'])

    def test_phone_number_not_valid_for_country(self):
        form = PatientForm(data={'name': 'Wrong Country', 'country_code': '1', 'national_number': '9876543210'})
        self.assertFalse(form.is_valid())
        self.assertIn('national_number', form.errors)

    def test_phone_number_missing_country_code(self):
        form = PatientForm(data={'name': 'Missing Code', 'country_code': '', 'national_number': '9876543005'})
        self.assertFalse(form.is_valid())
        self.assertIn('Please select a country code for the phone number.', form.errors['country_code'])

    def test_phone_number_conflict_with_existing_patient(self):
        form = PatientForm(data={'name': 'Duplicate', 'country_code': '91', 'national_number': '9876543003'})
        self.assertFalse(form.is_valid())
        self.assertIn(f"This phone number is already in use by patient: {self.existing_patient.name}.",
                      form.errors['national_number'])

    def test_phone_number_conflict_with_doctor(self):
        form = PatientForm(data={'name': 'Doctor Conflict', 'country_code': '91', 'national_number': '9876543001'})
        self.assertFalse(form.is_valid())
        self.assertIn(f"This phone number is already in use by doctor: {self.doctor.name}.",
                      form.errors['national_number'])

    def test_phone_number_conflict_with_staff_member(self):
        form = PatientForm(data={'name': 'Staff Conflict', 'country_code': '91', 'national_number': '9876543000'})
        self.assertFalse(form.is_valid())
        self.assertIn(f"This phone number is already in use by staff: {self.staff_member.name}.",
                      form.errors['national_number'])

    def test_edit_existing_patient_keeps_own_number(self):
        form = PatientForm(
            data={'name': 'Renamed Patient', 'country_code': '91', 'national_number': '9876543003'},
            instance=self.existing_patient,
        )
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.save().name, 'Renamed Patient')
        self.assertEqual(form.fields['national_number'].initial, '9876543003')


class PatientViewTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_superuser(username='testuser', password='testpassword')
        self.client.force_login(self.user)
        self.location = Location.objects.create(name='Yangon')
        self.patient = Patient.objects.create(name='Aung Aung', email='aung@example.com', location=self.location)
        Patient.objects.create(name='Su Su', email='susu@example.com', location=self.location)

    def test_patient_list_search(self):
        response = self.client.get(reverse('patients:patient_list'), {'q': 'aung@'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([p['name'] for p in response.json()['patients']], ['Aung Aung'])

    def test_add_patient(self):
        response = self.client.post(reverse('patients:add_patient'), {'name': 'Ko Ko'})
        self.assertEqual(response.status_code, 201)
        data = response.json()['patient']
        self.assertEqual(Decimal(data['balance']), Decimal('0.00'))
        self.assertEqual(data['loyalty_points'], 0)

    def test_add_patient_invalid(self):
        response = self.client.post(reverse('patients:add_patient'), {'name': ''})
        self.assertEqual(response.status_code, 400)
        self.assertIn('name', response.json()['errors'])

    def test_add_patient_requires_post(self):
        response = self.client.get(reverse('patients:add_patient'))
        self.assertEqual(response.status_code, 405)

    def test_edit_patient_does_not_touch_balance(self):
        Patient.objects.filter(pk=self.patient.pk).update(balance=Decimal('120.00'))
        response = self.client.post(reverse('patients:edit_patient', kwargs={'pk': self.patient.pk}), {
            'name': 'Aung Aung Oo', 'balance': '0',
        })
        self.assertEqual(response.status_code, 200)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.name, 'Aung Aung Oo')
        self.assertEqual(self.patient.balance, Decimal('120.00'))

    def test_patient_detail_includes_history(self):
        engine = LedgerEngine()
        engine.apply_treatment(self.patient.pk, [11], 'Filling', Decimal('80.00'))
        engine.process_payment(self.patient.pk, Decimal('30.00'))

        data = self.client.get(reverse('patients:patient_detail', kwargs={'pk': self.patient.pk})).json()
        self.assertEqual(Decimal(data['patient']['balance']), Decimal('50.00'))
        self.assertEqual(len(data['treatments']), 1)
        self.assertEqual(len(data['payments']), 1)
        self.assertEqual(data['medicine_sales'], [])

    def test_patient_of_another_location_is_hidden(self):
        other = Location.objects.create(name='Mandalay')
        user = User.objects.create_user(username='reception', password='password')
        StaffMember.objects.create(user=user, location=other)
        self.client.force_login(user)
        response = self.client.get(reverse('patients:patient_detail', kwargs={'pk': self.patient.pk}))
        self.assertEqual(response.status_code, 404)


class PatientFileTests(TestCase):

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.settings_override = override_settings(MEDIA_ROOT=self.media_root)
        self.settings_override.enable()
        self.client = Client()
        self.client.force_login(User.objects.create_superuser(username='testuser', password='testpassword'))
        self.patient = Patient.objects.create(name='Aung Aung')

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def upload(self, *files):
        url = reverse('patients:upload_patient_files', kwargs={'pk': self.patient.pk})
        return self.client.post(url, {'files': list(files)})

    def test_upload_multiple_files(self):
        response = self.upload(
            SimpleUploadedFile('xray.png', b'png-bytes', content_type='image/png'),
            SimpleUploadedFile('consent.pdf', b'%PDF-1.4', content_type='application/pdf'),
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(sorted(f['name'] for f in response.json()['files']), ['consent.pdf', 'xray.png'])
        self.assertTrue(all(f['path'].startswith(f'patient_files/patient_{self.patient.pk}/')
                            for f in response.json()['files']))

        listed = self.client.get(reverse('patients:patient_file_list', kwargs={'pk': self.patient.pk})).json()
        self.assertEqual(len(listed['files']), 2)

    def test_upload_rejects_unknown_types(self):
        response = self.upload(SimpleUploadedFile('notes.exe', b'MZ', content_type='application/octet-stream'))
        self.assertEqual(response.status_code, 400)
        self.assertFalse(PatientFile.objects.exists())

    def test_upload_without_files(self):
        response = self.client.post(reverse('patients:upload_patient_files', kwargs={'pk': self.patient.pk}))
        self.assertEqual(response.status_code, 400)

    def test_remove_file_deletes_from_storage(self):
        self.upload(SimpleUploadedFile('xray.png', b'png-bytes', content_type='image/png'))
        patient_file = PatientFile.objects.get()
        storage, name = patient_file.file.storage, patient_file.file.name
        self.assertTrue(storage.exists(name))

        url = reverse('patients:remove_patient_file', kwargs={'pk': self.patient.pk, 'file_pk': patient_file.pk})
        response = self.client.post(url)
        self.assertEqual(response.json()['removed'], name)
        self.assertFalse(storage.exists(name))
        self.assertFalse(PatientFile.objects.exists())
