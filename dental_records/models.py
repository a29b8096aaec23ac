from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from clinics.models import Location
from patients.models import Patient

MIN_TOOTH = 1
MAX_TOOTH = 32


def validate_teeth(value):
    if not isinstance(value, list):
        raise ValidationError("Teeth must be a list of tooth numbers.")
    for tooth in value:
        if not isinstance(tooth, int) or isinstance(tooth, bool) or not MIN_TOOTH <= tooth <= MAX_TOOTH:
            raise ValidationError(f"{tooth!r} is not a tooth number between {MIN_TOOTH} and {MAX_TOOTH}.")


# --- Service menu ---
class TreatmentType(models.Model):
    CATEGORY_CHOICES = [
        ('Preventative', 'Preventative'),
        ('Restorative', 'Restorative'),
        ('Cosmetic', 'Cosmetic'),
        ('Surgery', 'Surgery'),
        ('Orthodontics', 'Orthodontics'),
    ]

    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='treatment_types'
    )
    name = models.CharField(max_length=200)
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='Preventative')
    is_flat_rate = models.BooleanField(
        default=False,
        help_text="Charge the cost once, no matter how many teeth are treated."
    )

    class Meta:
        ordering = ['category', 'name']
        verbose_name = "Treatment Type"
        verbose_name_plural = "Treatment Types"

    def __str__(self):
        return f"{self.name} ({self.get_category_display()})"

    def as_dict(self):
        return {
            'id': self.pk,
            'location_id': self.location_id,
            'name': self.name,
            'cost': self.cost,
            'category': self.category,
            'is_flat_rate': self.is_flat_rate,
        }


# --- Treatment history ---
class ClinicalRecord(models.Model):
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='clinical_records'
    )
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='clinical_records')
    teeth = models.JSONField(
        default=list,
        blank=True,
        validators=[validate_teeth],
        help_text="Tooth numbers treated. Empty for general treatments."
    )
    description = models.CharField(max_length=255)
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    date = models.DateField(default=timezone.localdate)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-created_at']
        verbose_name = "Clinical Record"
        verbose_name_plural = "Clinical Records"

    def __str__(self):
        return f"{self.description} for {self.patient.name} on {self.date}"

    @property
    def teeth_display(self):
        return ', '.join(f"#{tooth}" for tooth in self.teeth) if self.teeth else 'General'

    def as_dict(self):
        return {
            'id': self.pk,
            'location_id': self.location_id,
            'patient_id': self.patient_id,
            'patient_name': self.patient.name,
            'teeth': list(self.teeth),
            'teeth_display': self.teeth_display,
            'description': self.description,
            'cost': self.cost,
            'date': self.date,
        }
