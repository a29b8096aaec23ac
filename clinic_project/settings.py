# clinic_project/settings.py

from pathlib import Path
import os
from decouple import config, Csv

# --- BASE DIRECTORY ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- SECURITY SETTINGS ---
SECRET_KEY = config('SECRET_KEY', default='django-insecure-dentflow-development-key')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='127.0.0.1,localhost,testserver', cast=Csv())

# --- APPLICATIONS ---
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'whitenoise.runserver_nostatic',
    'django.contrib.staticfiles',

    # Local apps
    'clinics',
    'patients',
    'doctors',
    'appointments',
    'dental_records',
    'billing',
    'loyalty',
    'reporting',
    'dashboard',
    # staff stays last: its post_migrate hook assigns permissions of the apps above
    'staff',

    # Third-party apps
    'phonenumber_field',
    'crispy_forms',
    'django_select2',
    'crispy_bootstrap5',
]

# --- MIDDLEWARE ---
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

# --- URLS & WSGI ---
ROOT_URLCONF = 'clinic_project.urls'
WSGI_APPLICATION = 'clinic_project.wsgi.application'

# --- TEMPLATES ---
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
                'clinic_project.context_processors.clinic_details',
                'clinic_project.context_processors.session_context_processor',
            ],
        },
    },
]

# --- DATABASE CONFIGURATION ---
DB_ENGINE = config('DB_ENGINE', default='sqlite3')

if DB_ENGINE == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': config('DB_NAME'),
            'USER': config('DB_USER'),
            'PASSWORD': config('DB_PASSWORD'),
            'HOST': config('DB_HOST', default='localhost'),
            'PORT': config('DB_PORT', default=5432, cast=int),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# --- INTERNATIONALIZATION ---
LANGUAGE_CODE = 'en-us'
TIME_ZONE = config('TIME_ZONE', default='Asia/Yangon')
USE_I18N = True
USE_TZ = True

# --- STATIC & MEDIA FILES ---
STATIC_URL = 'static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')
STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage',
    },
}

MEDIA_URL = '/media/'
MEDIA_ROOT = config('MEDIA_ROOT', default=os.path.join(BASE_DIR, 'media'))

# --- AUTH CONFIGURATION ---
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
LOGIN_REDIRECT_URL = '/'
LOGOUT_REDIRECT_URL = '/'
LOGIN_URL = 'staff:login'

# --- CRISPY FORMS ---
CRISPY_ALLOWED_TEMPLATE_PACKS = "bootstrap5"
CRISPY_TEMPLATE_PACK = "bootstrap5"

# --- PHONE NUMBERS ---
PHONENUMBER_DEFAULT_REGION = config('PHONENUMBER_DEFAULT_REGION', default='MM')

# --- SESSION CONFIG ---
SESSION_MAX_AGE_HOURS = config('SESSION_MAX_AGE_HOURS', default=24, cast=int)
SESSION_COOKIE_AGE = SESSION_MAX_AGE_HOURS * 3600
SESSION_SAVE_EVERY_REQUEST = True

# --- CLINIC CONFIG ---
CLINIC_NAME = config('CLINIC_NAME', default='DentFlow Pro Dental Clinic')
CLINIC_ADDRESS = config('CLINIC_ADDRESS', default='')
CLINIC_PHONE = config('CLINIC_PHONE', default='')
CLINIC_EMAIL = config('CLINIC_EMAIL', default='')
DEFAULT_CURRENCY = config('DEFAULT_CURRENCY', default='USD')
APPOINTMENT_SLOT_MINUTES = config('APPOINTMENT_SLOT_MINUTES', default=30, cast=int)
LOYALTY_DEFAULT_POINTS_PER_UNIT = config('LOYALTY_DEFAULT_POINTS_PER_UNIT', default='0.001')
RECENT_RECORDS_LIMIT = config('RECENT_RECORDS_LIMIT', default=50, cast=int)

# --- LOGGING ---
LOG_LEVEL = config('LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        app: {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False}
        for app in (
            'clinics', 'patients', 'doctors', 'appointments', 'dental_records',
            'billing', 'loyalty', 'reporting', 'dashboard', 'staff',
        )
    },
}
