from django.conf import settings
from django.db import models

from bookings.models import Booking


def default_currency():
    return settings.PAYMENT_CURRENCY


class Payment(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"
        REFUNDED = "refunded", "Refunded"
        PARTIAL_REFUND = "partial_refund", "Partially refunded"

    class Provider(models.TextChoices):
        STRIPE = "stripe", "Stripe"
        PAYPAL = "paypal", "PayPal"

    TRANSITIONS = {
        Status.PENDING: {Status.COMPLETED, Status.FAILED},
        Status.COMPLETED: {Status.REFUNDED, Status.PARTIAL_REFUND},
    }

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default=default_currency)
    provider = models.CharField(max_length=20, choices=Provider.choices, default=Provider.STRIPE)
    transaction_id = models.CharField(max_length=100, blank=True)
    client_token = models.CharField(max_length=255, blank=True)
    redirect_url = models.URLField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    refunded_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["booking", "status"]),
        ]

    def __str__(self):
        return f"Payment #{self.id} {self.amount} {self.currency} for booking {self.booking_id} [{self.status}]"

    def can_transition_to(self, new_status) -> bool:
        try:
            current, target = self.Status(self.status), self.Status(new_status)
        except ValueError:
            return False
        return target in self.TRANSITIONS.get(current, set())
