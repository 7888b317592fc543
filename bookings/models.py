import builtins

from django.conf import settings
from django.db import models
from django.utils import timezone

from properties.models import Property


class Booking(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"
        COMPLETED = "completed", "Completed"
        REJECTED = "rejected", "Rejected"

    # legal status changes; anything missing here is terminal
    TRANSITIONS = {
        Status.PENDING: {Status.CONFIRMED, Status.REJECTED, Status.CANCELLED},
        Status.CONFIRMED: {Status.COMPLETED, Status.CANCELLED},
    }
    # bookings that hold their dates
    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    # the field shadows the builtin inside the class body
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="bookings")
    guest = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookings")
    check_in = models.DateField()
    check_out = models.DateField()
    number_of_guests = models.PositiveIntegerField(default=1)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    special_requests = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "check_out"]),  # auto-completion
            models.Index(fields=["property", "check_in", "check_out"]),
        ]

    def __str__(self):
        return f"Booking #{self.id} {self.property_id} by {self.guest_id} [{self.status}]"

    @builtins.property
    def nights(self):
        return (self.check_out - self.check_in).days

    @builtins.property
    def host(self):
        return self.property.owner

    def can_transition_to(self, new_status) -> bool:
        try:
            current, target = self.Status(self.status), self.Status(new_status)
        except ValueError:
            return False
        return target in self.TRANSITIONS.get(current, set())

    def can_complete(self, today=None) -> bool:
        """Confirmed stays can be closed from the check-out day on."""
        today = today or timezone.now().date()
        return self.status == self.Status.CONFIRMED and self.check_out <= today


class Message(models.Model):
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="sent_messages")
    receiver = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="received_messages")
    text = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"Msg b#{self.booking_id} from {self.sender_id} to {self.receiver_id}"
