"""App config for the sales lead pipeline."""
from django.apps import AppConfig


class LeadsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "leads"
    verbose_name = "Sales leads"

    def ready(self):
        import leads.signals  # noqa: F401
