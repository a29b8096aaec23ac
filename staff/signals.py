# staff/signals.py

import logging

from django.contrib.auth.models import Group, Permission

from .models import ADMINISTRATORS_GROUP, CLINIC_STAFF_GROUP

logger = logging.getLogger(__name__)

FULL_ACCESS = ('view', 'add', 'change', 'delete')


def model_permissions(app_label, model_name, actions=FULL_ACCESS):
    return [f'{app_label}.{action}_{model_name}' for action in actions]


def assign_permissions(group, permissions):
    """
    Assigns a list of permissions to a group, clearing previous ones.
    """
    group.permissions.clear()
    for perm_codename in permissions:
        try:
            app_label, codename = perm_codename.split('.')
            perm = Permission.objects.get(content_type__app_label=app_label, codename=codename)
            group.permissions.add(perm)
        except Permission.DoesNotExist:
            logger.warning(f"Permission '{perm_codename}' not found. Skipping.")


def create_user_groups(sender, **kwargs):
    """
    Creates the two role groups and their permissions after migrations run.
    StaffMember.save() moves users between them when their role changes.
    """
    roles_permissions = {
        # Administrators manage every location, the service menu, loyalty
        # rules and the user accounts themselves.
        ADMINISTRATORS_GROUP: [
            *model_permissions('clinics', 'location'),
            *model_permissions('clinics', 'clinicsettings'),
            *model_permissions('staff', 'staffmember'),
            *model_permissions('patients', 'patient'),
            *model_permissions('patients', 'patientfile'),
            *model_permissions('doctors', 'doctor'),
            *model_permissions('doctors', 'doctorschedule'),
            *model_permissions('appointments', 'appointment'),
            *model_permissions('dental_records', 'treatmenttype'),
            *model_permissions('dental_records', 'clinicalrecord'),
            *model_permissions('billing', 'medicine'),
            *model_permissions('billing', 'medicinesale'),
            *model_permissions('billing', 'paymentrecord'),
            *model_permissions('loyalty', 'loyaltyrule'),
            *model_permissions('loyalty', 'loyaltytransaction'),
        ],
        # Clinic staff run the front desk and the chair: patients, bookings,
        # treatments, sales and payments at their own location.
        CLINIC_STAFF_GROUP: [
            'clinics.view_location', 'clinics.view_clinicsettings',
            *model_permissions('patients', 'patient', ('view', 'add', 'change')),
            *model_permissions('patients', 'patientfile', ('view', 'add', 'delete')),
            'doctors.view_doctor', 'doctors.view_doctorschedule',
            *model_permissions('appointments', 'appointment'),
            'dental_records.view_treatmenttype',
            *model_permissions('dental_records', 'clinicalrecord', ('view', 'add', 'delete')),
            *model_permissions('billing', 'medicine', ('view', 'change')),
            *model_permissions('billing', 'medicinesale', ('view', 'add')),
            *model_permissions('billing', 'paymentrecord', ('view', 'add')),
            'loyalty.view_loyaltyrule',
            *model_permissions('loyalty', 'loyaltytransaction', ('view', 'add')),
        ],
    }

    for role_name, perms in roles_permissions.items():
        group, _ = Group.objects.get_or_create(name=role_name)
        assign_permissions(group, perms)
        logger.info(f"Configured permissions for group: {group.name}")
