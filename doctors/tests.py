# doctors/tests.py

from datetime import time
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import TestCase, Client
from django.urls import reverse

from appointments.models import Appointment
from clinics.exceptions import InvalidSchedule
from clinics.models import Location
from patients.models import Patient
from .models import Doctor, DoctorSchedule, format_schedules, validate_weekly_schedule

User = get_user_model()


def schedule_data(*rows, initial=0):
    """Builds the POST data of the schedules formset from (day, start, end) rows."""
    data = {
        'schedules-TOTAL_FORMS': str(len(rows)),
        'schedules-INITIAL_FORMS': str(initial),
        'schedules-MIN_NUM_FORMS': '0',
        'schedules-MAX_NUM_FORMS': '1000',
    }
    for i, (day, start, end) in enumerate(rows):
        data[f'schedules-{i}-day_of_week'] = str(day)
        data[f'schedules-{i}-start_time'] = start
        data[f'schedules-{i}-end_time'] = end
    return data


class ScheduleValidationTests(TestCase):
    def test_valid_week(self):
        validate_weekly_schedule([(1, time(9), time(17)), (5, time(9), time(13))])

    def test_end_must_be_after_start(self):
        with self.assertRaisesMessage(InvalidSchedule, 'Monday: end time must be later than start time.'):
            validate_weekly_schedule([(1, time(17), time(9))])

    def test_equal_times_rejected(self):
        with self.assertRaises(InvalidSchedule):
            validate_weekly_schedule([(2, time(9), time(9))])

    def test_duplicate_day_rejected(self):
        with self.assertRaisesMessage(InvalidSchedule, 'Monday has more than one schedule.'):
            validate_weekly_schedule([(1, time(9), time(12)), (1, time(14), time(17))])

    def test_day_out_of_range(self):
        with self.assertRaises(InvalidSchedule):
            validate_weekly_schedule([(7, time(9), time(12))])

    def test_format_schedules(self):
        schedules = [
            SimpleNamespace(day_of_week=1, start_time=time(9), end_time=time(17)),
            SimpleNamespace(day_of_week=5, start_time=time(9), end_time=time(13)),
        ]
        self.assertEqual(format_schedules(schedules), 'Monday: 09:00 - 17:00 | Friday: 09:00 - 13:00')
        self.assertEqual(format_schedules([]), 'No schedule set')


class DoctorViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.client.force_login(User.objects.create_superuser(username='boss', password='password'))
        self.location = Location.objects.create(name='Yangon')

    def test_add_doctor_with_schedules(self):
        data = {'name': 'Min Thu', 'specialization': 'GD'}
        data.update(schedule_data((1, '09:00', '17:00'), (3, '13:00', '18:00')))
        response = self.client.post(reverse('doctors:add_doctor'), data)
        self.assertEqual(response.status_code, 201)
        doctor = response.json()['doctor']
        self.assertEqual(doctor['specialization'], 'General Dentistry')
        self.assertEqual(doctor['schedule_summary'], 'Monday: 09:00 - 17:00 | Wednesday: 13:00 - 18:00')
        self.assertEqual(DoctorSchedule.objects.count(), 2)

    def test_add_doctor_rejects_backwards_schedule(self):
        data = {'name': 'Min Thu'}
        data.update(schedule_data((1, '17:00', '09:00')))
        response = self.client.post(reverse('doctors:add_doctor'), data)
        self.assertEqual(response.status_code, 400)
        self.assertIn('end_time', response.json()['errors']['schedules'][0])
        self.assertFalse(Doctor.objects.exists())

    def test_add_doctor_rejects_duplicate_day(self):
        data = {'name': 'Min Thu'}
        data.update(schedule_data((2, '09:00', '12:00'), (2, '13:00', '17:00')))
        response = self.client.post(reverse('doctors:add_doctor'), data)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errors']['schedules_all'], ['Tuesday has more than one schedule.'])

    def test_edit_doctor_replaces_schedule(self):
        doctor = Doctor.objects.create(name='Min Thu', location=self.location)
        schedule = DoctorSchedule.objects.create(doctor=doctor, day_of_week=1, start_time=time(9), end_time=time(17))
        data = {'name': 'Min Thu'}
        data.update(schedule_data((1, '09:00', '17:00'), (4, '10:00', '14:00'), initial=1))
        data['schedules-0-id'] = str(schedule.pk)
        data['schedules-0-DELETE'] = 'on'

        response = self.client.post(reverse('doctors:edit_doctor', kwargs={'pk': doctor.pk}), data)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['doctor']['schedule_summary'], 'Thursday: 10:00 - 14:00')

    def test_doctor_list(self):
        Doctor.objects.create(name='Min Thu', location=self.location)
        response = self.client.get(reverse('doctors:doctor_list'))
        self.assertEqual([d['name'] for d in response.json()['doctors']], ['Min Thu'])

    def test_delete_doctor_with_appointments(self):
        doctor = Doctor.objects.create(name='Min Thu', location=self.location)
        patient = Patient.objects.create(name='Aung Aung', location=self.location)
        Appointment.objects.create(patient=patient, doctor=doctor, date='2024-01-01', time='09:00')
        response = self.client.post(reverse('doctors:delete_doctor', kwargs={'pk': doctor.pk}))
        self.assertEqual(response.status_code, 409)
        self.assertTrue(Doctor.objects.filter(pk=doctor.pk).exists())

    def test_delete_doctor(self):
        doctor = Doctor.objects.create(name='Min Thu', location=self.location)
        response = self.client.post(reverse('doctors:delete_doctor', kwargs={'pk': doctor.pk}))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Doctor.objects.exists())
