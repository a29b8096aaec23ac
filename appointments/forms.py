# appointments/forms.py

from django import forms
from django_select2.forms import ModelSelect2Widget

from .models import Appointment
from patients.models import Patient
from doctors.models import Doctor


class AppointmentForm(forms.ModelForm):
    patient = forms.ModelChoiceField(
        queryset=Patient.objects.all().order_by('name'),
        widget=ModelSelect2Widget(
            model=Patient,
            search_fields=['name__icontains'],
            attrs={'class': 'form-control', 'data-minimum-input-length': 0},
        ),
        to_field_name='pk'
    )
    doctor = forms.ModelChoiceField(
        queryset=Doctor.objects.all().order_by('name'),
        widget=forms.Select(attrs={'class': 'form-control'}),
        to_field_name='pk',
        required=False
    )
    date = forms.DateField(
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
        input_formats=['%Y-%m-%d']
    )
    time = forms.TimeField(
        widget=forms.TimeInput(attrs={'type': 'time', 'class': 'form-control'}, format='%H:%M'),
        input_formats=['%H:%M', '%H:%M:%S']
    )

    class Meta:
        model = Appointment
        fields = ['patient', 'doctor', 'date', 'time', 'type', 'status', 'notes']
        widgets = {
            'type': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g., Checkup, Cleaning'}),
            'status': forms.Select(attrs={'class': 'form-control'}),
            'notes': forms.Textarea(attrs={'rows': 3, 'class': 'form-control', 'placeholder': 'Internal notes'}),
        }
        labels = {
            'type': 'Appointment Type',
        }

    def __init__(self, *args, session=None, **kwargs):
        super().__init__(*args, **kwargs)
        if session is not None:
            self.fields['patient'].queryset = session.scope(self.fields['patient'].queryset)
            self.fields['doctor'].queryset = session.scope(self.fields['doctor'].queryset)
        for field_name, field in self.fields.items():
            if 'class' not in field.widget.attrs:
                field.widget.attrs.update({'class': 'form-control'})


class AppointmentStatusForm(forms.Form):
    status = forms.ChoiceField(choices=Appointment.STATUS_CHOICES)


class AvailableSlotsForm(forms.Form):
    doctor = forms.ModelChoiceField(queryset=Doctor.objects.all())
    date = forms.DateField(input_formats=['%Y-%m-%d'])

    def __init__(self, *args, session=None, **kwargs):
        super().__init__(*args, **kwargs)
        if session is not None:
            self.fields['doctor'].queryset = session.scope(self.fields['doctor'].queryset)
