# loyalty/models.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from clinics.models import Location
from patients.models import Patient


class LoyaltyRule(models.Model):
    TREATMENT = 'TREATMENT'
    PURCHASE = 'PURCHASE'
    VISIT = 'VISIT'
    REDEEM = 'REDEEM'
    EVENT_TYPE_CHOICES = [
        (TREATMENT, 'Treatment'),
        (PURCHASE, 'Medicine Purchase'),
        (VISIT, 'Completed Visit'),
        (REDEEM, 'Redemption'),
    ]

    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='loyalty_rules'
    )
    name = models.CharField(max_length=200)
    event_type = models.CharField(max_length=10, choices=EVENT_TYPE_CHOICES)
    points_per_unit = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal('0.0010'),
        help_text="Points earned per unit of currency. For redemptions: currency discount per point."
    )
    min_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Minimum amount to earn points. For redemptions: minimum points to redeem."
    )
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['pk']
        verbose_name = "Loyalty Rule"
        verbose_name_plural = "Loyalty Rules"

    def __str__(self):
        return f"{self.name} ({self.get_event_type_display()})"

    def clean(self):
        super().clean()
        if not self.active or not self.event_type:
            return
        clashing = LoyaltyRule.objects.filter(
            location_id=self.location_id,
            event_type=self.event_type,
            active=True,
        ).exclude(pk=self.pk)
        if clashing.exists():
            raise ValidationError({
                'active': f"There is already an active {self.get_event_type_display().lower()} rule "
                          f"for this location. Deactivate it first."
            })

    def as_dict(self):
        return {
            'id': self.pk,
            'location_id': self.location_id,
            'name': self.name,
            'event_type': self.event_type,
            'points_per_unit': self.points_per_unit,
            'min_amount': self.min_amount,
            'active': self.active,
        }


class LoyaltyTransaction(models.Model):
    EARNED = 'EARNED'
    REDEEMED = 'REDEEMED'
    TYPE_CHOICES = [
        (EARNED, 'Earned'),
        (REDEEMED, 'Redeemed'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='loyalty_transactions')
    location = models.ForeignKey(
        Location,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='loyalty_transactions'
    )
    points = models.IntegerField(help_text="Positive when earned, negative when redeemed.")
    type = models.CharField(max_length=8, choices=TYPE_CHOICES)
    description = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at', '-pk']
        verbose_name = "Loyalty Transaction"
        verbose_name_plural = "Loyalty Transactions"

    def __str__(self):
        return f"{self.points:+d} points for {self.patient.name} ({self.get_type_display()})"

    def as_dict(self):
        return {
            'id': self.pk,
            'patient_id': self.patient_id,
            'location_id': self.location_id,
            'points': self.points,
            'type': self.type,
            'description': self.description,
            'created_at': self.created_at,
        }
