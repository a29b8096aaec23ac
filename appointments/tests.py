from datetime import date, time, timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, Client, override_settings
from django.urls import reverse
from django.utils import timezone

from appointments.availability import AvailabilityCalculator
from appointments.models import Appointment
from clinics.models import Location
from doctors.models import Doctor, DoctorSchedule
from loyalty.models import LoyaltyRule, LoyaltyTransaction
from patients.models import Patient

User = get_user_model()

MONDAY = date(2024, 1, 1)


def schedule(day, start, end):
    return SimpleNamespace(day_of_week=day, start_time=start, end_time=end)


class AvailabilityCalculatorTests(TestCase):
    def setUp(self):
        self.calculator = AvailabilityCalculator(slot_minutes=30)

    def test_day_of_week_counts_from_sunday(self):
        self.assertEqual(self.calculator.day_of_week(MONDAY), 1)
        self.assertEqual(self.calculator.day_of_week(MONDAY - timedelta(days=1)), 0)
        self.assertEqual(self.calculator.day_of_week(MONDAY + timedelta(days=5)), 6)

    def test_booked_slot_is_removed(self):
        slots = self.calculator.free_slots([schedule(1, '09:00', '11:00')], ['09:30'], MONDAY)
        self.assertEqual(slots, ['09:00', '10:00', '10:30'])

    def test_end_time_is_exclusive(self):
        slots = self.calculator.free_slots([schedule(1, time(9, 0), time(10, 0))], [], MONDAY)
        self.assertEqual(slots, ['09:00', '09:30'])

    def test_no_schedule_for_weekday_returns_empty_list(self):
        self.assertEqual(self.calculator.free_slots([schedule(2, '09:00', '11:00')], [], MONDAY), [])

    def test_overlapping_schedules_are_deduplicated_and_sorted(self):
        schedules = [schedule(1, '14:00', '15:00'), schedule(1, '09:00', '10:00'), schedule(1, '09:30', '10:30')]
        slots = self.calculator.free_slots(schedules, [], MONDAY)
        self.assertEqual(slots, ['09:00', '09:30', '10:00', '14:00', '14:30'])

    def test_unaligned_booking_does_not_block_any_slot(self):
        slots = self.calculator.free_slots([schedule(1, '09:00', '10:00')], [time(9, 15)], MONDAY)
        self.assertEqual(slots, ['09:00', '09:30'])

    @override_settings(APPOINTMENT_SLOT_MINUTES=15)
    def test_slot_length_comes_from_settings(self):
        slots = AvailabilityCalculator().free_slots([schedule(1, '09:00', '09:45')], [], MONDAY)
        self.assertEqual(slots, ['09:00', '09:15', '09:30'])


class AppointmentViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.superuser = User.objects.create_superuser(username='admin', password='StrongPassword123')
        self.client.force_login(self.superuser)

        self.location = Location.objects.create(name='Downtown')
        self.patient = Patient.objects.create(name='John Doe', location=self.location)
        self.doctor = Doctor.objects.create(name='Aye Aye', location=self.location)
        DoctorSchedule.objects.create(doctor=self.doctor, day_of_week=1, start_time=time(9, 0), end_time=time(11, 0))

        today = timezone.localdate()
        self.upcoming = Appointment.objects.create(
            location=self.location, patient=self.patient, doctor=self.doctor,
            date=today + timedelta(days=1), time=time(9, 0),
        )
        self.past = Appointment.objects.create(
            location=self.location, patient=self.patient, doctor=self.doctor,
            date=today - timedelta(days=3), time=time(10, 0), status=Appointment.COMPLETED,
        )

    def test_list_splits_upcoming_and_past(self):
        response = self.client.get(reverse('appointments:appointment_list'))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual([a['id'] for a in data['upcoming']], [self.upcoming.pk])
        self.assertEqual([a['id'] for a in data['past']], [self.past.pk])

    def test_cancelled_future_appointment_is_past(self):
        self.upcoming.status = Appointment.CANCELLED
        self.upcoming.save()
        data = self.client.get(reverse('appointments:appointment_list')).json()
        self.assertEqual(data['upcoming'], [])
        self.assertEqual(len(data['past']), 2)

    def test_calendar_feed(self):
        response = self.client.get(reverse('appointments:appointment_api_view'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 2)

    def test_schedule_appointment_defaults(self):
        response = self.client.post(reverse('appointments:schedule_appointment'), {
            'patient': self.patient.pk,
            'doctor': self.doctor.pk,
            'date': '2030-05-06',
            'time': '09:30',
            'type': 'Checkup',
            'status': Appointment.SCHEDULED,
        })
        self.assertEqual(response.status_code, 201)
        appointment = Appointment.objects.get(pk=response.json()['appointment']['id'])
        self.assertEqual(appointment.location, self.location)
        self.assertEqual(appointment.time, time(9, 30))

    def test_schedule_appointment_requires_patient(self):
        response = self.client.post(reverse('appointments:schedule_appointment'), {
            'date': '2030-05-06', 'time': '09:30', 'type': 'Checkup', 'status': Appointment.SCHEDULED,
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('patient', response.json()['errors'])

    def test_available_slots_excludes_scheduled_bookings(self):
        Appointment.objects.create(
            location=self.location, patient=self.patient, doctor=self.doctor, date=MONDAY, time=time(9, 30),
        )
        Appointment.objects.create(
            location=self.location, patient=self.patient, doctor=self.doctor, date=MONDAY, time=time(10, 0),
            status=Appointment.CANCELLED,
        )
        response = self.client.get(reverse('appointments:available_slots'), {
            'doctor': self.doctor.pk, 'date': MONDAY.isoformat(),
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['slots'], ['09:00', '10:00', '10:30'])

    def test_available_slots_rejects_bad_date(self):
        response = self.client.get(reverse('appointments:available_slots'), {
            'doctor': self.doctor.pk, 'date': 'not-a-date',
        })
        self.assertEqual(response.status_code, 400)

    def test_completing_appointment_awards_visit_points(self):
        LoyaltyRule.objects.create(
            location=self.location, name='Visit bonus', event_type=LoyaltyRule.VISIT,
            points_per_unit=Decimal('10'), active=True,
        )
        response = self.client.post(
            reverse('appointments:update_status', kwargs={'pk': self.upcoming.pk}),
            {'status': Appointment.COMPLETED},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['points_earned'], 10)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.loyalty_points, 10)
        self.assertEqual(LoyaltyTransaction.objects.filter(patient=self.patient).count(), 1)

    def test_completing_twice_awards_visit_points_once(self):
        LoyaltyRule.objects.create(
            location=self.location, name='Visit bonus', event_type=LoyaltyRule.VISIT,
            points_per_unit=Decimal('10'), active=True,
        )
        url = reverse('appointments:update_status', kwargs={'pk': self.upcoming.pk})
        self.client.post(url, {'status': Appointment.COMPLETED})
        self.client.post(url, {'status': Appointment.COMPLETED})
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.loyalty_points, 10)

    def test_stale_read_of_completed_appointment_awards_nothing(self):
        LoyaltyRule.objects.create(
            location=self.location, name='Visit bonus', event_type=LoyaltyRule.VISIT,
            points_per_unit=Decimal('10'), active=True,
        )
        stale = Appointment.objects.get(pk=self.upcoming.pk)
        url = reverse('appointments:update_status', kwargs={'pk': self.upcoming.pk})
        self.client.post(url, {'status': Appointment.COMPLETED})

        self.assertEqual(stale.status, Appointment.SCHEDULED)
        with mock.patch('appointments.views.get_object_or_404', return_value=stale):
            response = self.client.post(url, {'status': Appointment.COMPLETED})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['points_earned'], 0)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.loyalty_points, 10)
        self.assertEqual(LoyaltyTransaction.objects.filter(patient=self.patient).count(), 1)

    def test_change_status_reports_only_the_completing_call(self):
        stale = Appointment.objects.get(pk=self.upcoming.pk)
        self.assertTrue(self.upcoming.change_status(Appointment.COMPLETED))
        self.assertFalse(stale.change_status(Appointment.COMPLETED))
        self.assertEqual(stale.status, Appointment.COMPLETED)
        self.assertFalse(stale.change_status(Appointment.CANCELLED))
        self.assertEqual(stale.status, Appointment.CANCELLED)

    def test_cancelling_awards_nothing(self):
        response = self.client.post(
            reverse('appointments:update_status', kwargs={'pk': self.upcoming.pk}),
            {'status': Appointment.CANCELLED},
        )
        self.assertEqual(response.status_code, 200)
        self.upcoming.refresh_from_db()
        self.assertEqual(self.upcoming.status, Appointment.CANCELLED)
        self.assertFalse(LoyaltyTransaction.objects.exists())

    def test_delete_appointment(self):
        response = self.client.post(reverse('appointments:delete_appointment', kwargs={'pk': self.past.pk}))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Appointment.objects.filter(pk=self.past.pk).exists())

    def test_delete_requires_post(self):
        response = self.client.get(reverse('appointments:delete_appointment', kwargs={'pk': self.past.pk}))
        self.assertEqual(response.status_code, 405)
