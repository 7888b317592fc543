from django.db.models.signals import post_save
from django.dispatch import receiver

from notifications.services import notification_service, notify_safely
from .models import Review


@receiver(post_save, sender=Review)
def notify_host_on_new_review(sender, instance: Review, created, **kwargs):
    """The reviewed host hears about new reviews; failures never block the save."""
    if created:
        notify_safely(notification_service.review_received, instance)
