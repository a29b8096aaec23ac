# reporting/forms.py

from datetime import datetime

from django import forms

from billing.models import Medicine
from loyalty.models import LoyaltyTransaction
from patients.models import Patient

DATE_RANGE_FORMAT = '%d/%m/%Y'


class ReportFilterForm(forms.Form):
    date_range = forms.CharField(
        label="Date Range",
        required=False,
        help_text="e.g., 01/03/2024 - 31/03/2024",
        widget=forms.TextInput(attrs={'class': 'form-control', 'id': 'report_date_range'})
    )
    patient = forms.ModelChoiceField(
        queryset=Patient.objects.all(),
        required=False,
        label="Patient Name",
        widget=forms.Select(attrs={'class': 'form-control select2-enable'})
    )
    medicine = forms.ModelChoiceField(
        queryset=Medicine.objects.all(),
        required=False,
        widget=forms.Select(attrs={'class': 'form-control select2-enable'})
    )
    type = forms.ChoiceField(
        label="Type",
        choices=[('', 'All Types')] + LoyaltyTransaction.TYPE_CHOICES,
        required=False,
        widget=forms.Select(attrs={'class': 'form-control'})
    )

    def __init__(self, *args, **kwargs):
        session = kwargs.pop('session', None)
        hide_patient = kwargs.pop('hide_patient', False)
        hide_medicine = kwargs.pop('hide_medicine', False)
        hide_type = kwargs.pop('hide_type', False)
        super().__init__(*args, **kwargs)

        if hide_patient: del self.fields['patient']
        if hide_medicine: del self.fields['medicine']
        if hide_type: del self.fields['type']

        if session is not None:
            if 'patient' in self.fields:
                self.fields['patient'].queryset = session.scope(Patient.objects.all())
            if 'medicine' in self.fields:
                self.fields['medicine'].queryset = session.scope(Medicine.objects.all())

    def clean_date_range(self):
        date_range_str = (self.cleaned_data.get('date_range') or '').strip()
        if not date_range_str:
            return None
        try:
            start_date_str, end_date_str = date_range_str.split(' - ')
            start_date = datetime.strptime(start_date_str.strip(), DATE_RANGE_FORMAT).date()
            end_date = datetime.strptime(end_date_str.strip(), DATE_RANGE_FORMAT).date()
        except (ValueError, TypeError):
            raise forms.ValidationError("Use the format dd/mm/YYYY - dd/mm/YYYY.")
        if end_date < start_date:
            raise forms.ValidationError("The end date cannot be before the start date.")
        return start_date, end_date
