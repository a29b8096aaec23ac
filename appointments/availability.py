# appointments/availability.py

from datetime import time

from django.conf import settings

from .models import Appointment


def _to_minutes(value):
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = str(value).split(':')[:2]
    return int(hours) * 60 + int(minutes)


def _to_hhmm(minutes):
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class AvailabilityCalculator:
    """
    Computes the open appointment slots of a doctor on a date.

    A slot is a start instant, not a duration: a booking only removes the
    slot that starts at exactly the same time.
    """

    def __init__(self, slot_minutes=None):
        self.slot_minutes = slot_minutes or settings.APPOINTMENT_SLOT_MINUTES

    @staticmethod
    def day_of_week(on_date):
        # date.weekday() counts from Monday; schedules count from Sunday.
        return (on_date.weekday() + 1) % 7

    def candidate_slots(self, start_time, end_time):
        start, end = _to_minutes(start_time), _to_minutes(end_time)
        return [_to_hhmm(minute) for minute in range(start, end, self.slot_minutes)]

    def free_slots(self, schedules, booked_times, on_date):
        """
        schedules: objects with day_of_week, start_time and end_time.
        booked_times: times already taken on on_date, as time objects or "HH:MM".
        """
        weekday = self.day_of_week(on_date)
        booked = {_to_hhmm(_to_minutes(t)) for t in booked_times}

        candidates = set()
        for schedule in schedules:
            if schedule.day_of_week != weekday:
                continue
            candidates.update(self.candidate_slots(schedule.start_time, schedule.end_time))

        return sorted(candidates - booked)

    def available_slots(self, doctor, on_date):
        booked_times = Appointment.objects.filter(
            doctor=doctor,
            date=on_date,
            status=Appointment.SCHEDULED,
        ).values_list('time', flat=True)
        return self.free_slots(doctor.schedules.all(), booked_times, on_date)
