# doctors/forms.py

from django import forms
from django.forms import BaseInlineFormSet, inlineformset_factory

from clinics.exceptions import InvalidSchedule
from .models import Doctor, DoctorSchedule, validate_weekly_schedule


class DoctorForm(forms.ModelForm):
    class Meta:
        model = Doctor
        fields = ['name', 'email', 'phone', 'specialization']
        labels = {
            'phone': 'Phone Number',
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field_name, field in self.fields.items():
            if 'class' not in field.widget.attrs:
                field.widget.attrs.update({'class': 'form-control'})


class DoctorScheduleForm(forms.ModelForm):
    class Meta:
        model = DoctorSchedule
        fields = ['day_of_week', 'start_time', 'end_time']
        widgets = {
            'day_of_week': forms.Select(attrs={'class': 'form-control'}),
            'start_time': forms.TimeInput(attrs={'type': 'time', 'class': 'form-control'}, format='%H:%M'),
            'end_time': forms.TimeInput(attrs={'type': 'time', 'class': 'form-control'}, format='%H:%M'),
        }


class BaseDoctorScheduleFormSet(BaseInlineFormSet):
    def clean(self):
        super().clean()
        if any(self.errors):
            return

        entries = []
        for form in self.forms:
            if not form.cleaned_data or form.cleaned_data.get('DELETE'):
                continue
            entries.append((
                form.cleaned_data['day_of_week'],
                form.cleaned_data['start_time'],
                form.cleaned_data['end_time'],
            ))
        try:
            validate_weekly_schedule(entries)
        except InvalidSchedule as e:
            raise forms.ValidationError(e.message)


DoctorScheduleFormSet = inlineformset_factory(
    Doctor,
    DoctorSchedule,
    form=DoctorScheduleForm,
    formset=BaseDoctorScheduleFormSet,
    fields=['day_of_week', 'start_time', 'end_time'],
    extra=0,
    can_delete=True,
    can_delete_extra=True
)
