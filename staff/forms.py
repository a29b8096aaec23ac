# staff/forms.py

from django import forms
from django.contrib.auth import get_user_model
from django.db import transaction
from phonenumber_field.phonenumber import to_python

from clinics.models import Location
from patients.forms import get_country_choices, phone_in_use_error
from .models import StaffMember

User = get_user_model()

USER_FIELDS = ('username', 'first_name', 'last_name', 'email')


class LoginForm(forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(widget=forms.PasswordInput)


class SwitchLocationForm(forms.Form):
    location = forms.ModelChoiceField(
        queryset=Location.objects.all(),
        required=False,
        empty_label="All locations"
    )


class StaffMemberForm(forms.ModelForm):
    """
    Creates or edits a staff member together with their login account.
    The role decides the permission group, see StaffMember.sync_groups().
    """
    username = forms.CharField(max_length=150)
    first_name = forms.CharField(max_length=150, required=False)
    last_name = forms.CharField(max_length=150, required=False)
    email = forms.EmailField(required=False)
    password = forms.CharField(widget=forms.PasswordInput, required=False, help_text="Leave blank to keep the current password.")
    country_code = forms.ChoiceField(choices=get_country_choices, required=False, label="Country Code", initial='95')
    national_number = forms.CharField(label="Phone Number", required=False)

    class Meta:
        model = StaffMember
        fields = ['role', 'location', 'is_active']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        editing = bool(self.instance.pk)

        if editing:
            for name in USER_FIELDS:
                self.fields[name].initial = getattr(self.instance.user, name)
            # Usernames are fixed once the account exists.
            self.fields['username'].disabled = True
            phone = self.instance.contact_number
            if phone:
                self.fields['country_code'].initial = str(phone.country_code)
                self.fields['national_number'].initial = str(phone.national_number)
        else:
            self.fields['password'].required = True
            self.fields['password'].help_text = "New users need a password."

        for field in self.fields.values():
            field.widget.attrs.setdefault('class', 'form-control')

    @property
    def user(self):
        return self.instance.user if self.instance.pk else None

    def clean_username(self):
        username = self.cleaned_data['username']
        if self.user is None and User.objects.filter(username__iexact=username).exists():
            raise forms.ValidationError("A user with this username already exists.")
        return username

    def clean_email(self):
        email = self.cleaned_data.get('email')
        if not email:
            return email
        taken_by = User.objects.filter(email__iexact=email).exclude(pk=getattr(self.user, 'pk', None)).first()
        if taken_by is not None:
            raise forms.ValidationError(
                f"This email address is already in use by user: {taken_by.get_full_name() or taken_by.username}."
            )
        return email

    def clean(self):
        cleaned_data = super().clean()
        country_code = cleaned_data.get('country_code')
        national_number = (cleaned_data.get('national_number') or '').strip()
        cleaned_data['contact_number'] = None

        if national_number and not country_code:
            self.add_error('national_number', "Both country code and phone number are required.")
        elif national_number:
            phone_number = to_python(f"+{country_code}{national_number}")
            if not (phone_number and phone_number.is_valid()):
                self.add_error('national_number', "The phone number is not valid for the selected country.")
            else:
                in_use = phone_in_use_error(phone_number, staff_member=self.instance)
                if in_use:
                    self.add_error('national_number', in_use)
                cleaned_data['contact_number'] = phone_number

        if cleaned_data.get('role') == StaffMember.NORMAL and not cleaned_data.get('location'):
            self.add_error('location', "Clinic staff must be assigned to a location.")

        return cleaned_data

    @transaction.atomic
    def save(self, commit=True):
        user = self.user or User(username=self.cleaned_data['username'])
        for name in ('first_name', 'last_name', 'email'):
            setattr(user, name, self.cleaned_data[name])
        if self.cleaned_data.get('password'):
            user.set_password(self.cleaned_data['password'])
        user.save()

        self.instance.user = user
        staff_member = super().save(commit=False)
        staff_member.contact_number = self.cleaned_data['contact_number']
        if commit:
            staff_member.save()
        return staff_member
