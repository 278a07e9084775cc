"""Base settings for Assessment Service."""
import os
import sys
from pathlib import Path

from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(BASE_DIR.parent.parent.parent))

SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
DEBUG = os.environ.get('DEBUG', 'True').lower() == 'true'
ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', '*').split(',')

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'rest_framework',
    'corsheaders',
    'apps.core',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'shared.common.middleware.RequestIDMiddleware',
    'shared.common.middleware.LoggingMiddleware',
]

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'

# Entities are owned by the portal API; the local database only backs
# Django's own bookkeeping.
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('DB_NAME', str(BASE_DIR / 'assessment.sqlite3')),
    }
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': ['shared.common.authentication.GatewayHeaderAuthentication'],
    'DEFAULT_PERMISSION_CLASSES': ['shared.common.permissions.IsAuthenticated'],
    'EXCEPTION_HANDLER': 'shared.common.exceptions.custom_exception_handler',
    'UNAUTHENTICATED_USER': None,
}

CORS_ALLOW_ALL_ORIGINS = DEBUG

REDIS_URL = os.environ.get('REDIS_URL', 'redis://redis:6379/9')
CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': REDIS_URL,
    }
}

CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', REDIS_URL)
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', REDIS_URL)
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TIME_LIMIT = 120

CELERY_BEAT_SCHEDULE = {
    'auto-submit-expired-attempts': {
        'task': 'apps.core.tasks.auto_submit_expired_attempts',
        'schedule': crontab(minute='*'),  # Every minute
    },
}

SERVICE_NAME = 'assessment-service'
SERVICE_PORT = 8016
SERVICE_AUTH_TOKEN = os.environ.get('SERVICE_AUTH_TOKEN', '')

PORTAL_ROLES = ['pilot', 'trainer', 'examiner', 'admin']

CIRCUIT_BREAKER = {
    'FAILURE_THRESHOLD': 5,
    'SUCCESS_THRESHOLD': 2,
    'RESET_TIMEOUT': 30,
}

SERVICE_URLS = {
    'portal-api': os.environ.get('PORTAL_API_URL', 'http://portal-api:3000'),
    'notification-service': os.environ.get('NOTIFICATION_SERVICE_URL', 'http://notification-service:8000'),
}

ASSESSMENT = {
    'PORTAL_API_TIMEOUT': float(os.environ.get('PORTAL_API_TIMEOUT', 10)),
    'TOKEN_LENGTH': 8,
    'TOKEN_ALPHABET': 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789',
    'TOKEN_DEFAULT_EXPIRATION_HOURS': 24,
    'TOKEN_MAX_GENERATION_ATTEMPTS': 5,
    'PASS_THRESHOLD': '0.7',
    'DEFAULT_MAX_ASSIGNMENTS': 5,
    'RECHECK_CAPACITY_IN_BATCH': os.environ.get('RECHECK_CAPACITY_IN_BATCH', 'True').lower() == 'true',
    'SUBMIT_LOCK_TIMEOUT': 30,
    'SUBMIT_LOCK_WAIT': 5,
    'SWEEP_GRACE_SECONDS': int(os.environ.get('SWEEP_GRACE_SECONDS', 0)),
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'filters': {'request_id': {'()': 'shared.common.middleware.RequestIDFilter'}},
    'formatters': {
        'json': {
            '()': 'pythonjsonlogger.jsonlogger.JsonFormatter',
            'format': '%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'json',
            'filters': ['request_id'],
        },
    },
    'root': {'handlers': ['console'], 'level': os.environ.get('LOG_LEVEL', 'INFO')},
}
