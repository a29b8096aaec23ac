# patients/forms.py

from django import forms
from django.core.exceptions import ValidationError
from .models import Patient, PatientFile
from doctors.models import Doctor # Imported for cross-check
from staff.models import StaffMember # Imported for cross-check
from phonenumber_field.phonenumber import to_python
from phonenumbers.data import _COUNTRY_CODE_TO_REGION_CODE
from babel import Locale

ALLOWED_FILE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'pdf'}
MAX_FILE_SIZE = 10 * 1024 * 1024


def get_country_choices():
    english_locale = Locale.parse("en")
    choices = [('', '---------')]
    processed_codes = set()
    for code, region_codes in sorted(_COUNTRY_CODE_TO_REGION_CODE.items()):
        primary_region = region_codes[0]
        if primary_region in processed_codes:
            continue
        country_name = english_locale.territories.get(primary_region, primary_region)
        choices.append((str(code), f"{country_name} (+{code})"))
        processed_codes.add(primary_region)
    return sorted(choices, key=lambda x: x[1])


def phone_in_use_error(phone_number, patient=None, staff_member=None):
    """
    Returns the error to show when a phone number already belongs to a
    patient, doctor or staff member, or None when it is free. The record
    being edited is passed in so that it does not clash with itself.
    """
    owners = (
        ('patient', Patient.objects.filter(contact_number=phone_number).exclude(pk=getattr(patient, 'pk', None))),
        ('doctor', Doctor.objects.filter(phone=phone_number)),
        ('staff', StaffMember.objects.filter(contact_number=phone_number).exclude(pk=getattr(staff_member, 'pk', None))),
    )
    for label, queryset in owners:
        owner = queryset.first()
        if owner is not None:
            return f"This phone number is already in use by {label}: {owner.name}."
    return None


class PatientForm(forms.ModelForm):
    country_code = forms.ChoiceField(
        label="Country Code",
        choices=get_country_choices,
        initial='95',
        required=False
    )
    national_number = forms.CharField(
        label="Phone Number",
        required=False,
        widget=forms.TextInput(attrs={'placeholder': 'e.g., 9123456789'})
    )

    class Meta:
        model = Patient
        fields = ['name', 'email', 'medical_history']
        widgets = {
            'medical_history': forms.Textarea(attrs={'rows': 3, 'placeholder': 'Allergies, conditions, current medications'}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Populate country_code and national_number from existing instance
        if self.instance and self.instance.pk and self.instance.contact_number:
            self.fields['country_code'].initial = str(self.instance.contact_number.country_code)
            self.fields['national_number'].initial = str(self.instance.contact_number.national_number)

        for field in self.fields.values():
            if 'class' not in field.widget.attrs:
                field.widget.attrs.update({'class': 'form-control'})

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name:
            raise ValidationError("Patient name is required.")
        return name

    def clean(self):
        cleaned_data = super().clean()
        country_code = cleaned_data.get("country_code")
        national_number = (cleaned_data.get("national_number") or '').strip()

        # --- Phone Number Validation and Cross-Check ---
        if national_number and country_code:
            phone_number = to_python(f"+{country_code}{national_number}")
            if not (phone_number and phone_number.is_valid()):
                self.add_error('national_number', "The phone number is not valid for the selected country.")
                return cleaned_data

            in_use = phone_in_use_error(phone_number, patient=self.instance)
            if in_use:
                self.add_error('national_number', in_use)

            cleaned_data['contact_number'] = phone_number
        elif national_number:
            self.add_error('country_code', "Please select a country code for the phone number.")
        else:
            cleaned_data['contact_number'] = None

        return cleaned_data

    def save(self, commit=True):
        instance = super().save(commit=False)
        if 'contact_number' in self.cleaned_data:
            instance.contact_number = self.cleaned_data['contact_number']
        if commit:
            instance.save()
        return instance


class PatientFileUploadForm(forms.Form):
    files = forms.FileField(required=True)

    def clean_files(self):
        uploaded = self.cleaned_data['files']
        extension = uploaded.name.rsplit('.', 1)[-1].lower() if '.' in uploaded.name else ''
        if extension not in ALLOWED_FILE_EXTENSIONS:
            raise ValidationError(f"Files of type '{extension or 'unknown'}' cannot be uploaded.")
        if uploaded.size > MAX_FILE_SIZE:
            raise ValidationError("Files larger than 10 MB cannot be uploaded.")
        return uploaded

    def save(self, patient):
        uploaded = self.cleaned_data['files']
        return PatientFile.objects.create(
            patient=patient,
            file=uploaded,
            name=PatientFile.display_name(uploaded),
            size=uploaded.size,
            content_type=getattr(uploaded, 'content_type', '') or '',
        )
