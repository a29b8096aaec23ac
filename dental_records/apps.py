# dental_records/apps.py

from django.apps import AppConfig


class DentalRecordsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'dental_records'
    verbose_name = 'Dental Records'
