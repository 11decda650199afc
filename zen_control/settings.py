"""
Django settings for zen_control project.

Values that differ between devices come from the environment.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('ZEN_SECRET_KEY', 'zen-control-local-device-key')

DEBUG = os.environ.get('ZEN_DEBUG', '0') in {'1', 'true', 'True'}

ALLOWED_HOSTS = os.environ.get('ZEN_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'scheduling',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
]

ROOT_URLCONF = 'zen_control.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'zen_control.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('ZEN_DB_PATH', str(BASE_DIR / 'zen_control.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'pt-br'
TIME_ZONE = 'America/Sao_Paulo'
USE_I18N = True
# Dates and times are naive local values throughout.
USE_TZ = False

STATIC_URL = 'static/'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'EXCEPTION_HANDLER': 'scheduling.views.scheduling_exception_handler',
    'UNAUTHENTICATED_USER': None,
}

# Scheduling

SCHEDULING_MIRROR_URL = os.environ.get('ZEN_MIRROR_URL', '')
SCHEDULING_MIRROR_TIMEOUT = float(os.environ.get('ZEN_MIRROR_TIMEOUT', '15'))
SCHEDULING_ADMIN_PASSPHRASE = os.environ.get('ZEN_ADMIN_PASSPHRASE', 'Vilage#2027')
SCHEDULING_BACKUP_DIR = os.environ.get('ZEN_BACKUP_DIR', str(BASE_DIR / 'backups'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'loggers': {
        'scheduling': {
            'handlers': ['console'],
            'level': os.environ.get('ZEN_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
