from django.conf import settings
from django.db import models


class Notification(models.Model):
    class Types(models.TextChoices):
        BOOKING_REQUEST = "booking_request", "New booking request"
        BOOKING_UPDATE = "booking_update", "Booking status update"
        BOOKING_REMINDER = "booking_reminder", "Upcoming stay reminder"
        PAYMENT_UPDATE = "payment_update", "Payment status update"
        MESSAGE = "message", "New message in booking thread"
        REVIEW = "review", "New review"
        SYSTEM = "system", "System announcement"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    type = models.CharField(max_length=50, choices=Types.choices)
    title = models.CharField(max_length=255)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read"]),
        ]

    def __str__(self):
        return f"{self.type} -> {self.user_id}"
