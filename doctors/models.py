# doctors/models.py

from django.core.exceptions import ValidationError
from django.db import models
from phonenumber_field.modelfields import PhoneNumberField

from clinics.exceptions import InvalidSchedule
from clinics.models import Location

DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']


class Doctor(models.Model):
    SPECIALIZATION_CHOICES = [
        ('GD', 'General Dentistry'), ('ORTHO', 'Orthodontics'),
        ('ENDO', 'Endodontics'), ('PERIO', 'Periodontics'),
        ('PROSTHO', 'Prosthodontics'), ('PEDO', 'Pediatric Dentistry'),
        ('OS', 'Oral Surgery'), ('OTHER', 'Other'),
    ]

    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='doctors'
    )
    name = models.CharField(max_length=120)
    email = models.EmailField(blank=True, null=True)
    phone = PhoneNumberField(blank=True, null=True, unique=True)
    specialization = models.CharField(
        max_length=10,
        choices=SPECIALIZATION_CHOICES,
        blank=True,
        null=True
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"Dr. {self.name}"

    @property
    def schedule_summary(self):
        return format_schedules(self.schedules.all())

    def as_dict(self):
        return {
            'id': self.pk,
            'location_id': self.location_id,
            'name': self.name,
            'email': self.email or '',
            'phone': str(self.phone) if self.phone else '',
            'specialization': self.get_specialization_display() if self.specialization else '',
            'schedules': [schedule.as_dict() for schedule in self.schedules.all()],
            'schedule_summary': self.schedule_summary,
            'created_at': self.created_at,
        }


class DoctorSchedule(models.Model):
    DAY_OF_WEEK_CHOICES = list(enumerate(DAY_NAMES))

    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='schedules')
    day_of_week = models.PositiveSmallIntegerField(choices=DAY_OF_WEEK_CHOICES)
    start_time = models.TimeField()
    end_time = models.TimeField()

    class Meta:
        ordering = ['day_of_week', 'start_time']
        verbose_name = "Doctor Schedule"
        verbose_name_plural = "Doctor Schedules"

    def __str__(self):
        return f"{self.get_day_of_week_display()}: {self.start_time:%H:%M} - {self.end_time:%H:%M}"

    def clean(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({'end_time': "End time must be later than start time on the same day."})

    def as_dict(self):
        return {
            'id': self.pk,
            'day_of_week': self.day_of_week,
            'day_name': DAY_NAMES[self.day_of_week],
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
        }


def validate_weekly_schedule(entries):
    """
    Checks (day_of_week, start_time, end_time) entries before they are saved:
    each must end after it starts and no day may appear twice.
    """
    seen_days = set()
    for day_of_week, start_time, end_time in entries:
        if day_of_week not in range(7):
            raise InvalidSchedule(f"Day of week must be between 0 (Sunday) and 6 (Saturday), got {day_of_week}.")
        if end_time <= start_time:
            raise InvalidSchedule(f"{DAY_NAMES[day_of_week]}: end time must be later than start time.")
        if day_of_week in seen_days:
            raise InvalidSchedule(f"{DAY_NAMES[day_of_week]} has more than one schedule.")
        seen_days.add(day_of_week)


def format_schedules(schedules):
    """e.g. 'Monday: 09:00 - 12:00, 14:00 - 17:00 | Friday: 09:00 - 13:00'"""
    grouped = {}
    for schedule in schedules:
        day = DAY_NAMES[schedule.day_of_week]
        grouped.setdefault(day, []).append(f"{schedule.start_time:%H:%M} - {schedule.end_time:%H:%M}")
    if not grouped:
        return 'No schedule set'
    return ' | '.join(f"{day}: {', '.join(times)}" for day, times in grouped.items())
