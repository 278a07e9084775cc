"""Celery application for the Assessment Service."""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('assessment_service')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
