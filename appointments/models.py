# appointments/models.py

from django.db import models
from django.utils import timezone
from clinics.models import Location
from doctors.models import Doctor
from patients.models import Patient


class Appointment(models.Model):
    SCHEDULED = 'Scheduled'
    COMPLETED = 'Completed'
    CANCELLED = 'Cancelled'
    STATUS_CHOICES = [
        (SCHEDULED, 'Scheduled'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]

    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='appointments'
    )
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(
        Doctor,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='appointments'
    )

    date = models.DateField()
    time = models.TimeField()
    type = models.CharField(max_length=100, default='Checkup')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=SCHEDULED)
    notes = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Appointment for {self.patient.name} on {self.date:%Y-%m-%d} {self.time:%H:%M}"

    @property
    def is_upcoming(self):
        return self.date >= timezone.localdate() and self.status == self.SCHEDULED

    def change_status(self, new_status):
        """
        Sets the status and returns True only for the call that moved the
        appointment into Completed. The switch is a conditional UPDATE, so a
        stale copy of an already completed appointment gets False.
        """
        now = timezone.now()
        rows = Appointment.objects.filter(pk=self.pk)
        if new_status == self.COMPLETED:
            rows = rows.exclude(status=self.COMPLETED)
        changed = rows.update(status=new_status, updated_at=now)
        self.refresh_from_db(fields=['status', 'updated_at'])
        return new_status == self.COMPLETED and changed == 1

    def as_dict(self):
        return {
            'id': self.pk,
            'location_id': self.location_id,
            'patient_id': self.patient_id,
            'patient_name': self.patient.name,
            'doctor_id': self.doctor_id,
            'doctor_name': self.doctor.name if self.doctor else '',
            'date': self.date,
            'time': self.time.strftime('%H:%M'),
            'type': self.type,
            'status': self.status,
            'notes': self.notes or '',
        }

    class Meta:
        ordering = ['-date', '-time']
