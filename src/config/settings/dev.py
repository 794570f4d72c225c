"""Development settings."""
from .base import *  # noqa: F401,F403

DEBUG = True
ENABLE_DJANGO_ADMIN = True

# Short idle window so abandoned dashboards are reaped quickly while testing
PIPELINE_SUBSCRIPTION_IDLE_SECONDS = env.int(  # noqa: F405
    "PIPELINE_SUBSCRIPTION_IDLE_SECONDS", default=300,
)

# Logging
LOGGING["root"]["level"] = "DEBUG"  # noqa: F405
