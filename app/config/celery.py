"""
Celery configuration for the Django application.

Celery runs the background side of account reconciliation:
- On-demand refresh of a single connected account from Stripe
- Periodic sweep of accounts still pending or restricted, for the case
  where Stripe never delivered (or we rejected) the account.updated webhook

Redis is both the message broker and result backend. Tasks are
auto-discovered from all installed Django apps, and the beat schedule
lives in settings.CELERY_BEAT_SCHEDULE.

Usage:
    # Refresh one account in the background:
    from host_payments.tasks import refresh_connected_account

    refresh_connected_account.delay(user.id)

    # Run a worker and the scheduler:
    celery -A config worker -l info
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Looks for a tasks.py module in each installed app
app.autodiscover_tasks()
