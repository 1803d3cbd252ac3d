"""
Django settings for the HealthHub backend.

Base settings: PostgreSQL via DATABASE_URL, JWT auth, one app per domain.
settings_dev / settings_prod override what differs per environment.
"""

import os
from datetime import timedelta
from pathlib import Path

import dj_database_url
from dotenv import load_dotenv

load_dotenv()


BASE_DIR = Path(__file__).resolve().parent.parent


SECRET_KEY = os.getenv(
    'DJANGO_SECRET_KEY',
    'django-insecure-3v!h8x#k0m@b2q$n5r^w7z&c9t*y1u(e4i)o6p-a+s=d_f',
)

DEBUG = os.getenv('DJANGO_DEBUG', 'False').lower() == 'true'

ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,[::1]').split(',')
    if host.strip()
]


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'rest_framework',
    'corsheaders',

    'healthhub_backend.core',
    'healthhub_backend.patients',
    'healthhub_backend.doctors',
    'healthhub_backend.lab',
    'healthhub_backend.visits',
    'healthhub_backend.reports',
    'healthhub_backend.payouts',
]


MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]


ROOT_URLCONF = 'healthhub_backend.urls'


TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]


WSGI_APPLICATION = 'healthhub_backend.wsgi.application'


DATABASES = {
    'default': dj_database_url.config(
        env='DATABASE_URL',
        default='postgres://postgres@localhost:5432/healthhub',
        conn_max_age=int(os.getenv('DB_CONN_MAX_AGE', '0')),
    ),
}


AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]


# Custom user model (must be set before running any migrations)
AUTH_USER_MODEL = 'core.User'


REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
}


JWT_SIGNING_KEY = os.getenv('JWT_SIGNING_KEY', SECRET_KEY)

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=30),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
    'ALGORITHM': 'HS256',
    'SIGNING_KEY': JWT_SIGNING_KEY,
}


# Domain configuration
HEALTHHUB = {
    # Public base URL used for QR codes and shareable report links
    'REPORT_BASE_URL': os.getenv('REPORT_BASE_URL', 'http://localhost:8000'),
    # None = report links never expire
    'REPORT_TOKEN_EXPIRY_DAYS': (
        int(os.environ['REPORT_TOKEN_EXPIRY_DAYS'])
        if os.getenv('REPORT_TOKEN_EXPIRY_DAYS')
        else None
    ),
    'REPORT_VIEW_TOKEN_LIFETIME': timedelta(hours=1),
    'NUMBER_SEQUENCE_MAX_RETRIES': int(os.getenv('NUMBER_SEQUENCE_MAX_RETRIES', '10')),
    'NUMBER_SEQUENCE_BASE_DELAY_MS': 50,
    'NUMBER_SEQUENCE_MAX_DELAY_MS': 2000,
    'LAB_NAME': os.getenv('LAB_NAME', 'HealthHub Diagnostic Centre'),
    'LAB_ADDRESS': os.getenv('LAB_ADDRESS', ''),
    'LAB_PHONE': os.getenv('LAB_PHONE', ''),
}


LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('DJANGO_TIME_ZONE', 'Asia/Kolkata')
USE_I18N = True
USE_TZ = True


STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
REDIS_PORT = os.getenv('REDIS_PORT', '6379')

CELERY_BROKER_URL = f"redis://{REDIS_HOST}:{REDIS_PORT}/0"
CELERY_RESULT_BACKEND = CELERY_BROKER_URL
CELERY_BEAT_SCHEDULE = {
    'purge-expired-report-tokens': {
        'task': 'healthhub_backend.reports.tasks.purge_expired_access_tokens',
        'schedule': timedelta(hours=6),
    },
}


LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{levelname} {asctime} {module}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'healthhub_backend': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
