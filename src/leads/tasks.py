"""Celery tasks for the lead pipeline."""
import logging

from celery import shared_task

logger = logging.getLogger("jewellery")


@shared_task(name="leads.tasks.reap_idle_subscriptions")
def reap_idle_subscriptions(max_idle=None):
    """Drop change subscriptions nobody has touched for a while.

    Runs every few minutes (see ``config/celery.py`` beat schedule).
    """
    from leads.notifications import channel

    reaped = channel.reap_idle(max_idle)
    logger.info("reap_idle_subscriptions: %d reaped, %d left", reaped, channel.subscription_count())
    return reaped
