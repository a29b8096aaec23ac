# billing/forms.py

from decimal import Decimal

from django import forms
from django.core.exceptions import ValidationError
from django_select2 import forms as s2forms

from dental_records.models import ClinicalRecord
from .models import Medicine


# ================== INVENTORY ==================

class MedicineForm(forms.ModelForm):
    class Meta:
        model = Medicine
        fields = ['name', 'description', 'unit', 'price', 'stock', 'min_stock', 'category']
        widgets = {
            'description': forms.Textarea(attrs={'rows': 2}),
            'unit': forms.TextInput(attrs={'placeholder': 'e.g., pack, bottle, box'}),
            'category': forms.TextInput(attrs={'placeholder': 'e.g., Pain Relief, Antibiotics'}),
        }
        labels = {
            'min_stock': 'Low Stock Threshold',
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field_name, field in self.fields.items():
            if 'class' not in field.widget.attrs:
                field.widget.attrs.update({'class': 'form-control'})

    def clean_price(self):
        price = self.cleaned_data.get('price')
        if price is not None and price < Decimal('0.00'):
            raise ValidationError('Price cannot be negative.')
        return price


# ================== SALES & PAYMENTS ==================

class MedicineSaleForm(forms.Form):
    medicine = forms.ModelChoiceField(
        queryset=Medicine.objects.all(),
        widget=s2forms.Select2Widget,
        empty_label="Select a Medicine..."
    )
    quantity = forms.IntegerField(min_value=1, initial=1)
    treatment = forms.ModelChoiceField(queryset=ClinicalRecord.objects.none(), required=False)

    def __init__(self, *args, **kwargs):
        self.patient = kwargs.pop('patient', None)
        session = kwargs.pop('session', None)
        super().__init__(*args, **kwargs)
        if session is not None:
            self.fields['medicine'].queryset = session.scope(Medicine.objects.all())
        if self.patient is not None:
            self.fields['treatment'].queryset = ClinicalRecord.objects.filter(patient=self.patient)

    def clean(self):
        cleaned_data = super().clean()
        medicine = cleaned_data.get('medicine')
        quantity = cleaned_data.get('quantity')
        if medicine and quantity and quantity > medicine.stock:
            self.add_error('quantity', f'Only {medicine.stock} {medicine.unit} of {medicine.name} left in stock.')
        return cleaned_data


class PaymentForm(forms.Form):
    amount = forms.DecimalField(max_digits=12, decimal_places=2)

    def __init__(self, *args, **kwargs):
        self.patient = kwargs.pop('patient', None)
        super().__init__(*args, **kwargs)
        if self.patient and not self.initial.get('amount'):
            self.fields['amount'].initial = self.patient.balance

    def clean_amount(self):
        amount = self.cleaned_data.get('amount')

        if amount is not None and amount <= Decimal('0.00'):
            raise ValidationError('Amount must be greater than zero.')

        if not self.patient:
            return amount

        if amount is not None and amount > self.patient.balance:
            raise ValidationError(
                f'Payment of {amount} exceeds the outstanding balance of {self.patient.balance:.2f}.'
            )
        return amount
