# patients/models.py

import os
from decimal import Decimal

from django.db import models
from phonenumber_field.modelfields import PhoneNumberField

from clinics.models import Location


class Patient(models.Model):
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='patients'
    )
    name = models.CharField(max_length=120)
    email = models.EmailField(blank=True, default='')
    contact_number = PhoneNumberField(
        blank=True,
        null=True,
        help_text="Enter phone number with country code (e.g., +95)."
    )
    medical_history = models.TextField(blank=True, null=True, help_text="e.g., Penicillin allergy, Diabetes")

    # Maintained only by billing.ledger.LedgerEngine.
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    loyalty_points = models.PositiveIntegerField(default=0)
    last_visit = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} (ID: {self.pk})"

    @property
    def has_outstanding_balance(self):
        return self.balance > Decimal('0.00')

    def as_dict(self):
        return {
            'id': self.pk,
            'location_id': self.location_id,
            'name': self.name,
            'email': self.email,
            'phone': str(self.contact_number) if self.contact_number else '',
            'medical_history': self.medical_history or '',
            'balance': self.balance,
            'loyalty_points': self.loyalty_points,
            'last_visit': self.last_visit,
            'created_at': self.created_at,
        }

    class Meta:
        ordering = ['name']


def patient_file_path(instance, filename):
    return f'patient_files/patient_{instance.patient.pk}/{filename}'


class PatientFile(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='files')
    file = models.FileField(upload_to=patient_file_path)
    name = models.CharField(max_length=255)
    size = models.PositiveIntegerField(default=0)
    content_type = models.CharField(max_length=100, blank=True, default='')
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-uploaded_at']

    def __str__(self):
        return f"{self.name} for {self.patient.name}"

    @property
    def path(self):
        return self.file.name

    def as_dict(self):
        return {
            'id': self.pk,
            'path': self.path,
            'name': self.name,
            'size': self.size,
            'type': self.content_type,
            'uploaded_at': self.uploaded_at,
            'url': self.file.url,
        }

    def delete(self, *args, **kwargs):
        storage, name = self.file.storage, self.file.name
        super().delete(*args, **kwargs)
        if name and storage.exists(name):
            storage.delete(name)

    @staticmethod
    def display_name(uploaded_file):
        return os.path.basename(uploaded_file.name)
