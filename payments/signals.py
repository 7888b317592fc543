from django.db.models.signals import pre_save, post_save
from django.dispatch import receiver

from notifications.services import notification_service, notify_safely
from .models import Payment


@receiver(pre_save, sender=Payment)
def store_previous_status(sender, instance: Payment, **kwargs):
    if instance.pk:
        instance._previous_status = (
            Payment.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
        )
    else:
        instance._previous_status = None


@receiver(post_save, sender=Payment)
def notify_on_payment_status_change(sender, instance: Payment, created, **kwargs):
    # a payment is announced once it leaves PENDING
    if created:
        return
    previous = getattr(instance, "_previous_status", None)
    if previous is not None and previous != instance.status:
        notify_safely(notification_service.payment_status_changed, instance)
