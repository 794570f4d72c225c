"""Signals: announce lead changes to the floor once the write commits."""
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from leads import notifications


@receiver(post_save, sender="leads.Lead")
def on_lead_saved(sender, instance, **kwargs):
    notifications.publish_on_commit(notifications.lead_topic(instance.floor))


@receiver(post_delete, sender="leads.Lead")
def on_lead_deleted(sender, instance, **kwargs):
    notifications.publish_on_commit(notifications.lead_topic(instance.floor))
