"""Signals: announce new or deleted reports to the floor."""
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from leads import notifications


@receiver(post_save, sender="reports.SalesReport")
def on_report_saved(sender, instance, **kwargs):
    notifications.publish_on_commit(notifications.report_topic(instance.floor))


@receiver(post_delete, sender="reports.SalesReport")
def on_report_deleted(sender, instance, **kwargs):
    notifications.publish_on_commit(notifications.report_topic(instance.floor))
