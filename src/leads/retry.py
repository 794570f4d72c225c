"""Transient database failure handling for the lead store.

Idempotent operations (reads, assignment) are retried with exponential
backoff; other writes surface :class:`TransientIO` straight away and are
treated as not applied.
"""
import functools
import logging
import time

from django.conf import settings
from django.db import InterfaceError, OperationalError, transaction

from leads.exceptions import TransientIO

logger = logging.getLogger("jewellery")

TRANSIENT_ERRORS = (OperationalError, InterfaceError)


def retry_transient(func):
    """Retry *func* on transient database errors, then raise ``TransientIO``."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        attempts = max(1, settings.PIPELINE_TRANSIENT_RETRIES)
        backoff = settings.PIPELINE_TRANSIENT_BACKOFF_SECONDS
        for attempt in range(1, attempts + 1):
            try:
                # Savepoint per attempt so a failed try leaves the connection usable.
                with transaction.atomic():
                    return func(*args, **kwargs)
            except TRANSIENT_ERRORS as exc:
                if attempt == attempts:
                    logger.error(
                        "%s failed after %d attempts: %s", func.__name__, attempts, exc,
                    )
                    raise TransientIO() from exc
                delay = backoff * (2 ** (attempt - 1))
                logger.warning(
                    "%s hit a transient error (attempt %d/%d), retrying in %.2fs: %s",
                    func.__name__, attempt, attempts, delay, exc,
                )
                if delay:
                    time.sleep(delay)

    return wrapper


def no_retry_transient(func):
    """Translate transient database errors into ``TransientIO`` without retrying."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TRANSIENT_ERRORS as exc:
            logger.error("%s failed on a transient error, not applied: %s", func.__name__, exc)
            raise TransientIO() from exc

    return wrapper
