"""Celery configuration."""
import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    os.getenv("DJANGO_SETTINGS_MODULE", "config.settings.dev"),
)

app = Celery("jewellery")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Beat schedule
app.conf.beat_schedule = {
    "reports-daily-floor-reports": {
        "task": "reports.tasks.daily_floor_reports",
        "schedule": crontab(minute=55, hour=23),  # Daily at 11:55pm, before the day closes
    },
    "leads-reap-idle-subscriptions": {
        "task": "leads.tasks.reap_idle_subscriptions",
        "schedule": crontab(minute="*/5"),  # Every 5 minutes
    },
}
