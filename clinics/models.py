# clinics/models.py

from django.conf import settings
from django.db import models

from phonenumber_field.modelfields import PhoneNumberField


class Location(models.Model):
    name = models.CharField(max_length=200, unique=True)
    address = models.TextField(blank=True, default='')
    phone = PhoneNumberField(blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Location"
        verbose_name_plural = "Locations"

    def __str__(self):
        return self.name

    def as_dict(self):
        return {
            'id': self.pk,
            'name': self.name,
            'address': self.address,
            'phone': str(self.phone) if self.phone else '',
            'email': self.email or '',
            'created_at': self.created_at,
        }


class ClinicSettings(models.Model):
    CURRENCY_CHOICES = [
        ('USD', 'US Dollar'),
        ('MMK', 'Myanmar Kyat'),
    ]

    location = models.OneToOneField(
        Location,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='clinic_settings',
        help_text="Leave empty for the settings that apply to global administrators."
    )
    loyalty_enabled = models.BooleanField(default=True)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='USD')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Clinic Settings"
        verbose_name_plural = "Clinic Settings"

    def __str__(self):
        where = self.location.name if self.location else "All locations"
        return f"Settings for {where}"

    @classmethod
    def for_location(cls, location_id):
        """
        Returns the settings row of a location, creating it with the
        configured defaults the first time it is asked for.
        """
        clinic_settings, _ = cls.objects.get_or_create(
            location_id=location_id,
            defaults={'currency': settings.DEFAULT_CURRENCY},
        )
        return clinic_settings
