# loyalty/forms.py

from django import forms

from .models import LoyaltyRule


class LoyaltyRuleForm(forms.ModelForm):
    class Meta:
        model = LoyaltyRule
        fields = ['name', 'event_type', 'points_per_unit', 'min_amount', 'active']
        widgets = {
            'name': forms.TextInput(attrs={'placeholder': 'e.g., Treatment points'}),
            'points_per_unit': forms.NumberInput(attrs={'step': '0.0001', 'min': '0'}),
            'active': forms.CheckboxInput(attrs={'class': 'form-check-input'}),
        }

    def __init__(self, *args, location_id=None, **kwargs):
        super().__init__(*args, **kwargs)
        # New rules belong to the current location.
        if not self.instance.pk:
            self.instance.location_id = location_id
        for field_name, field in self.fields.items():
            if 'class' not in field.widget.attrs:
                field.widget.attrs.update({'class': 'form-control'})

    def clean_points_per_unit(self):
        points_per_unit = self.cleaned_data.get('points_per_unit')
        if points_per_unit is not None and points_per_unit < 0:
            raise forms.ValidationError("The rate cannot be negative.")
        return points_per_unit


class RedeemPointsForm(forms.Form):
    points = forms.IntegerField(min_value=1)

    def __init__(self, *args, **kwargs):
        self.patient = kwargs.pop('patient', None)
        super().__init__(*args, **kwargs)

    def clean_points(self):
        points = self.cleaned_data['points']
        if self.patient is not None and points > self.patient.loyalty_points:
            raise forms.ValidationError(
                f"{self.patient.name} only has {self.patient.loyalty_points} points."
            )
        return points


class ResetPointsForm(forms.Form):
    CONFIRMATION = 'RESET'

    confirm = forms.CharField(help_text=f"Type {CONFIRMATION} to erase every patient's points and history.")

    def clean_confirm(self):
        confirm = self.cleaned_data['confirm']
        if confirm != self.CONFIRMATION:
            raise forms.ValidationError(f"Type {self.CONFIRMATION} to confirm.")
        return confirm
