"""App config for the reports module."""
from django.apps import AppConfig


class ReportsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "reports"
    verbose_name = "Sales reports"

    def ready(self):
        import reports.signals  # noqa: F401
