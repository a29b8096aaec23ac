from decimal import Decimal

from django import forms

from .models import TreatmentType, MIN_TOOTH, MAX_TOOTH


class TreatmentTypeForm(forms.ModelForm):
    class Meta:
        model = TreatmentType
        fields = ['name', 'cost', 'category', 'is_flat_rate']
        widgets = {
            'name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g., Composite Filling'}),
            'cost': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01', 'min': '0'}),
            'category': forms.Select(attrs={'class': 'form-control'}),
            'is_flat_rate': forms.CheckboxInput(attrs={'class': 'form-check-input'}),
        }
        labels = {
            'is_flat_rate': 'Flat rate (charge once per visit)',
        }

    def clean_cost(self):
        cost = self.cleaned_data['cost']
        if cost < 0:
            raise forms.ValidationError("Cost cannot be negative.")
        return cost


class TeethField(forms.CharField):
    """Accepts "11, 12, 30" and returns [11, 12, 30]. Blank means a general treatment."""

    def to_python(self, value):
        value = super().to_python(value)
        if not value:
            return []
        teeth = []
        for part in value.replace(';', ',').split(','):
            part = part.strip()
            if not part:
                continue
            try:
                tooth = int(part)
            except ValueError:
                raise forms.ValidationError(f"'{part}' is not a tooth number.")
            if not MIN_TOOTH <= tooth <= MAX_TOOTH:
                raise forms.ValidationError(f"Tooth numbers must be between {MIN_TOOTH} and {MAX_TOOTH}.")
            if tooth not in teeth:
                teeth.append(tooth)
        return teeth


class ApplyTreatmentForm(forms.Form):
    """
    A treatment applied to a patient. Picking a service from the menu fills
    in the description, unit cost and flat-rate flag unless they are given.
    """
    treatment_type = forms.ModelChoiceField(
        queryset=TreatmentType.objects.all(),
        required=False,
        widget=forms.Select(attrs={'class': 'form-control'})
    )
    teeth = TeethField(required=False, widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g., 14, 15'}))
    description = forms.CharField(max_length=255, required=False)
    unit_cost = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'), required=False)
    flat_rate = forms.NullBooleanField(required=False)
    teeth_count = forms.IntegerField(min_value=0, required=False)

    def __init__(self, *args, session=None, **kwargs):
        super().__init__(*args, **kwargs)
        if session is not None:
            self.fields['treatment_type'].queryset = session.scope(TreatmentType.objects.all())

    def clean(self):
        cleaned_data = super().clean()
        treatment_type = cleaned_data.get('treatment_type')

        if treatment_type is not None:
            if not cleaned_data.get('description'):
                cleaned_data['description'] = treatment_type.name
            if cleaned_data.get('unit_cost') is None:
                cleaned_data['unit_cost'] = treatment_type.cost
            if cleaned_data.get('flat_rate') is None:
                cleaned_data['flat_rate'] = treatment_type.is_flat_rate

        if not cleaned_data.get('description'):
            self.add_error('description', "Enter a description or pick a treatment from the menu.")
        if cleaned_data.get('unit_cost') is None:
            self.add_error('unit_cost', "Enter a cost or pick a treatment from the menu.")
        cleaned_data['flat_rate'] = bool(cleaned_data.get('flat_rate'))
        return cleaned_data
