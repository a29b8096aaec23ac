# staff/models.py

from django.conf import settings
from django.contrib.auth.models import Group
from django.db import models
from django.utils import timezone
from phonenumber_field.modelfields import PhoneNumberField

from clinics.models import Location

ADMINISTRATORS_GROUP = 'Administrators'
CLINIC_STAFF_GROUP = 'Clinic Staff'


class StaffMember(models.Model):
    ADMIN = 'admin'
    NORMAL = 'normal'
    ROLE_CHOICES = [
        (ADMIN, 'Administrator'),
        (NORMAL, 'Clinic Staff'),
    ]
    ROLE_GROUPS = {
        ADMIN: ADMINISTRATORS_GROUP,
        NORMAL: CLINIC_STAFF_GROUP,
    }

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='staff_profile'
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='staff_members',
        help_text="Leave empty for administrators who work across all locations."
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=NORMAL)
    contact_number = PhoneNumberField(unique=True, null=True, blank=True)
    date_joined = models.DateField(default=timezone.localdate)
    is_active = models.BooleanField(default=True)

    @property
    def name(self):
        return self.user.get_full_name() or self.user.get_username()

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        # Sync is_active status with the user model
        if self.user.is_active != self.is_active:
            self.user.is_active = self.is_active
            self.user.save(update_fields=['is_active'])

        super().save(*args, **kwargs)
        self.sync_groups()

    def sync_groups(self):
        """Puts the user in the permission group of their role, and only that one."""
        role_groups = Group.objects.filter(name__in=self.ROLE_GROUPS.values())
        self.user.groups.remove(*role_groups)
        group, _ = Group.objects.get_or_create(name=self.ROLE_GROUPS[self.role])
        self.user.groups.add(group)

    def as_dict(self):
        return {
            'id': self.pk,
            'user_id': self.user_id,
            'username': self.user.get_username(),
            'name': self.name,
            'email': self.user.email,
            'role': self.role,
            'location_id': self.location_id,
            'location_name': self.location.name if self.location else '',
            'contact_number': str(self.contact_number) if self.contact_number else '',
            'is_active': self.is_active,
            'date_joined': self.date_joined,
        }

    class Meta:
        ordering = ['user__first_name', 'user__last_name', 'user__username']
