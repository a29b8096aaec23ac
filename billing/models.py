# billing/models.py

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F
from django.utils import timezone

from clinics.models import Location
from dental_records.models import ClinicalRecord
from patients.models import Patient


# ========== Medicine ==========

class MedicineQuerySet(models.QuerySet):
    def low_stock(self):
        return self.filter(stock__lte=F('min_stock'))


class Medicine(models.Model):
    OUT = 'out'
    LOW = 'low'
    WARNING = 'warning'
    OK = 'ok'

    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='medicines'
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    unit = models.CharField(max_length=50, default='pack', help_text="e.g., pack, bottle, box")
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    stock = models.PositiveIntegerField(default=0)
    min_stock = models.PositiveIntegerField(default=0, help_text="Stock level at which to reorder.")
    category = models.CharField(max_length=100, blank=True, default='', help_text="e.g., Pain Relief, Antibiotics")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MedicineQuerySet.as_manager()

    class Meta:
        ordering = ['name']
        verbose_name = "Medicine"
        verbose_name_plural = "Medicines"

    def __str__(self):
        return self.name

    @property
    def stock_status(self):
        if self.stock == 0:
            return self.OUT
        if self.stock <= self.min_stock:
            return self.LOW
        if self.stock <= Decimal(self.min_stock) * Decimal('1.5'):
            return self.WARNING
        return self.OK

    @property
    def stock_value(self):
        return (self.price * self.stock).quantize(Decimal('0.01'))

    def as_dict(self):
        return {
            'id': self.pk,
            'location_id': self.location_id,
            'name': self.name,
            'description': self.description,
            'unit': self.unit,
            'price': self.price,
            'stock': self.stock,
            'min_stock': self.min_stock,
            'category': self.category,
            'stock_status': self.stock_status,
            'stock_value': self.stock_value,
        }


# ========== MedicineSale ==========

class MedicineSale(models.Model):
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='medicine_sales'
    )
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='medicine_sales')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='sales')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField(default=timezone.localdate)
    treatment = models.ForeignKey(
        ClinicalRecord,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='medicine_sales',
        help_text="Set when the medicine was sold together with a treatment."
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-created_at']
        verbose_name = "Medicine Sale"
        verbose_name_plural = "Medicine Sales"

    def __str__(self):
        return f"{self.quantity} x {self.medicine.name} for {self.patient.name}"

    def as_dict(self):
        return {
            'id': self.pk,
            'location_id': self.location_id,
            'patient_id': self.patient_id,
            'patient_name': self.patient.name,
            'medicine_id': self.medicine_id,
            'medicine_name': self.medicine.name,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'total_price': self.total_price,
            'date': self.date,
            'treatment_id': self.treatment_id,
        }


# ========== PaymentRecord ==========

class PaymentRecord(models.Model):
    FULL = 'FULL'
    PARTIAL = 'PARTIAL'
    TYPE_CHOICES = [
        (FULL, 'Full Payment'),
        (PARTIAL, 'Partial Payment'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField(default=timezone.localdate)
    type = models.CharField(max_length=7, choices=TYPE_CHOICES)
    remaining_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-created_at']
        verbose_name = "Payment Record"
        verbose_name_plural = "Payment Records"

    def __str__(self):
        return f"{self.get_type_display()} of {self.amount} by {self.patient.name} on {self.date}"

    def as_dict(self):
        return {
            'id': self.pk,
            'patient_id': self.patient_id,
            'amount': self.amount,
            'date': self.date,
            'type': self.type,
            'remaining_balance': self.remaining_balance,
        }
