"""
Celery configuration.

Redis is both the message broker and the result backend. Tasks are
auto-discovered from the installed apps:

- payments.tasks: webhook processing, webhook retry/cleanup (beat),
  escrow capture reconciliation
- contracts.tasks: contract generation for paid collaboration orders

Periodic schedules live in the database (django-celery-beat) and are
created by the payments data migrations.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
