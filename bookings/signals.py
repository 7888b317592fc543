from django.db.models.signals import pre_save, post_save
from django.dispatch import receiver

from notifications.services import notification_service, notify_safely
from .models import Booking


@receiver(pre_save, sender=Booking)
def store_previous_status(sender, instance: Booking, **kwargs):
    if instance.pk:
        instance._previous_status = (
            Booking.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
        )
    else:
        instance._previous_status = None


@receiver(post_save, sender=Booking)
def notify_on_booking_events(sender, instance: Booking, created, **kwargs):
    # new request -> host
    if created:
        if instance.status == Booking.Status.PENDING:
            notify_safely(notification_service.booking_requested, instance)
        return

    # status change -> guest and host
    previous = getattr(instance, "_previous_status", None)
    if previous is not None and previous != instance.status:
        notify_safely(notification_service.booking_status_changed, instance)
